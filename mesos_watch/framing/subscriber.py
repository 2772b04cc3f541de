from typing import Any, Callable

Consumer = Callable[[str, Any], None]


class Subscriber:
    """
    One consumer plus the group tag it registered with.

    Both the success and the failure path go through the same call; an
    empty document means the cycle failed to decode.
    """

    __slots__ = (
        "consumer",
        "group_tag",
    )

    def __init__(self, consumer: Consumer, group_tag: Any = None) -> None:
        self.consumer = consumer
        self.group_tag = group_tag

    def emit(self, document: str):
        self.consumer(document, self.group_tag)

    def fail(self):
        self.consumer("", self.group_tag)
