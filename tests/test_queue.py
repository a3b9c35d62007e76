"""Unit tests for the request queue."""

from __future__ import annotations

import pytest

from etheripc.errors import TransportError
from etheripc.ipc.queue import PendingCall, RequestQueue
from etheripc.models import CallEnvelope, CallIdCounter, CallType


class Recorder:
    def __init__(self) -> None:
        self.writes: list[CallEnvelope] = []
        self.busy_notifications = 0
        self.fail_writes = False

    def write(self, envelope: CallEnvelope) -> None:
        if self.fail_writes:
            raise TransportError("Socket not writeable")
        self.writes.append(envelope)

    def busy_changed(self) -> None:
        self.busy_notifications += 1


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def queue(recorder: Recorder) -> RequestQueue:
    return RequestQueue(recorder.write, recorder.busy_changed)


def _call(queue: RequestQueue, call_type: CallType = CallType.GET_BLOCK_NUMBER) -> PendingCall:
    return PendingCall(queue.new_call(call_type))


class TestRequestQueue:
    def test_new_call_binds_method_and_id(self, queue: RequestQueue) -> None:
        first = queue.new_call(CallType.GET_BALANCE, ["0xA", "latest"], 3)
        second = queue.new_call(CallType.GET_GAS_PRICE)

        assert first.method == "eth_getBalance"
        assert first.params == ("0xA", "latest")
        assert first.index == 3
        assert second.call_id == first.call_id + 1

    def test_injected_counter(self, recorder: Recorder) -> None:
        counter = CallIdCounter(100)
        queue = RequestQueue(recorder.write, counter=counter)
        assert queue.new_call(CallType.GET_PEER_COUNT).call_id == 100
        assert counter.next_id() == 101

    def test_idle_enqueue_writes_immediately(self, queue: RequestQueue, recorder: Recorder) -> None:
        call = _call(queue)
        queue.enqueue(call)

        assert recorder.writes == [call.envelope]
        assert queue.active is call
        assert queue.busy
        assert recorder.busy_notifications == 1

    def test_busy_enqueue_appends(self, queue: RequestQueue, recorder: Recorder) -> None:
        calls = [_call(queue) for _ in range(3)]
        for call in calls:
            queue.enqueue(call)

        assert recorder.writes == [calls[0].envelope]
        assert queue.pending == calls[1:]

    def test_advance_writes_in_fifo_order(self, queue: RequestQueue, recorder: Recorder) -> None:
        calls = [_call(queue) for _ in range(3)]
        for call in calls:
            queue.enqueue(call)
        queue.advance()
        queue.advance()

        assert recorder.writes == [call.envelope for call in calls]
        assert queue.active is calls[2]

        queue.advance()
        assert queue.active is None
        assert not queue.busy
        assert recorder.busy_notifications == 2

    def test_write_failure_propagates(self, queue: RequestQueue, recorder: Recorder) -> None:
        recorder.fail_writes = True
        call = _call(queue)
        with pytest.raises(TransportError):
            queue.enqueue(call)
        assert queue.active is call

    def test_abandon_drops_everything(self, queue: RequestQueue) -> None:
        calls = [_call(queue) for _ in range(3)]
        for call in calls:
            queue.enqueue(call)

        assert queue.abandon() == calls
        assert queue.active is None
        assert queue.pending == []
        assert not queue.busy

    def test_reserve_holds_writes_until_release(self, queue: RequestQueue, recorder: Recorder) -> None:
        queue.reserve()
        assert queue.busy

        call = _call(queue)
        queue.enqueue(call)
        assert recorder.writes == []

        queue.release()
        assert recorder.writes == [call.envelope]
        assert queue.active is call

    def test_release_with_nothing_queued_goes_idle(self, queue: RequestQueue) -> None:
        queue.reserve()
        queue.release()
        assert not queue.busy
