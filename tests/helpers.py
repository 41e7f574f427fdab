"""Shared message fixtures used across the test modules."""
from message_api.schemas.message import MessageIn

# A related set of messages in one group, timestamps spanning 11-25 .. 11-30.
GROUP_777 = [
    {"userid": "12121212", "groupid": "777", "timestamp": "2013-11-28T23:07:40+00:00",
     "messagetext": "In three words I can sum up everything I have learned about life: it goes on."},
    {"userid": "232323", "groupid": "777", "timestamp": "2013-11-29T23:05:40+00:00",
     "messagetext": "Second message."},
    {"userid": "232323", "groupid": "777", "timestamp": "2013-11-30T23:05:40+00:00",
     "messagetext": "Third message."},
    {"userid": "232323", "groupid": "777", "timestamp": "2013-11-25T23:05:40+00:00",
     "messagetext": "First message."},
]

# One off message in a group of its own.
NOTE = {
    "userid": "12121212",
    "groupid": "999",
    "timestamp": "2013-11-28T23:07:40+00:00",
    "messagetext": "hello",
}


def candidate(data: dict, **overrides) -> MessageIn:
    return MessageIn.model_validate({**data, **overrides})
