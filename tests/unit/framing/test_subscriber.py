from conftest import RecordingConsumer
from mesos_watch.framing import Subscriber


class TestSubscriber:
    def test_emit_passes_group_tag(self, consumer: RecordingConsumer):
        tag = object()
        subscriber = Subscriber(consumer, tag)

        subscriber.emit('{"apps": []}')

        assert consumer.calls == [('{"apps": []}', tag)]

    def test_fail_emits_empty_document(self, consumer: RecordingConsumer):
        subscriber = Subscriber(consumer, "group")

        subscriber.fail()

        assert consumer.calls == [("", "group")]
