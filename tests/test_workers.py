import time

import pytest

from conftest import FakeTransport, RecordingEvent
from tracker.config import TrackerConfig
from tracker.identity import CPFConverter
from tracker.protocol import PacketParser, build_handshake_packet
from tracker.simulator import GalileoskySimulator
from tracker.workers import StartupWorker

IMEI = "357138166785014"
CPF = "12565696908"


def make_simulator(location_service, transport, stop_event=None, **config_overrides):
    config = TrackerConfig(**config_overrides)
    return GalileoskySimulator(location_service, config, transport=transport, stop_event=stop_event)


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


# ------------------ saving worker ------------------ #

def test_save_packet_queues_telemetry(location_service):
    simulator = make_simulator(location_service, FakeTransport())
    worker = simulator.saving_worker
    worker.configure(IMEI, CPF)

    packet = worker.save_packet()

    assert simulator.packet_queue.snapshot() == [packet]
    decoded = PacketParser.parse(packet)
    assert decoded["imei"] == IMEI
    assert decoded["identity"] == CPFConverter.compress(CPF)
    assert decoded["satellites"] == 9
    assert decoded["speed"] == 120
    assert decoded["altitude"] == 934


def test_save_packet_emits_queue_size(location_service):
    simulator = make_simulator(location_service, FakeTransport())
    worker = simulator.saving_worker
    worker.configure(IMEI, CPF)
    sizes = []
    worker.packet_saved.connect(sizes.append)

    worker.save_packet()
    worker.save_packet()

    assert sizes == [1, 2]


# ------------------ sending worker ------------------ #

def test_process_once_idle_when_queue_empty(location_service):
    transport = FakeTransport()
    simulator = make_simulator(location_service, transport)
    simulator.connection.record_attempt(True)

    assert simulator.sending_worker.process_once() is False
    assert transport.sent == []


def test_process_once_delivers_head(location_service):
    transport = FakeTransport()
    simulator = make_simulator(location_service, transport)
    simulator.connection.record_attempt(True)
    simulator.add_data_packet(b"first")
    simulator.add_data_packet(b"second")

    assert simulator.sending_worker.process_once() is True
    assert transport.sent == [b"first"]
    assert simulator.packet_queue.snapshot() == [b"second"]


def test_process_once_keeps_packet_on_failure(location_service):
    transport = FakeTransport(default=False)
    simulator = make_simulator(location_service, transport)
    simulator.connection.record_attempt(True)
    simulator.add_data_packet(b"first")
    simulator.add_data_packet(b"second")

    assert simulator.sending_worker.process_once() is False
    assert simulator.packet_queue.snapshot() == [b"first", b"second"]
    assert simulator.is_connected is False


def test_process_once_reconnects_when_disconnected(location_service):
    transport = FakeTransport()
    simulator = make_simulator(location_service, transport)
    simulator.add_data_packet(b"first")

    assert simulator.sending_worker.process_once() is False
    assert transport.sent == [build_handshake_packet("IMEI")]
    assert simulator.is_connected is True
    assert simulator.packet_queue.snapshot() == [b"first"]


def test_failed_packet_retried_in_order_after_reconnect(location_service):
    event = RecordingEvent()
    transport = FakeTransport([True, False, True, True, True])
    simulator = make_simulator(location_service, transport, stop_event=event)
    simulator.connection.record_attempt(True)
    for packet in (b"p1", b"p2", b"p3"):
        simulator.add_data_packet(packet)

    worker = simulator.sending_worker
    for _ in range(5):
        worker.process_once()

    handshake = build_handshake_packet("IMEI")
    assert transport.sent == [b"p1", b"p2", handshake, b"p2", b"p3"]
    assert len(simulator.packet_queue) == 0


def test_process_once_does_nothing_after_shutdown(location_service):
    transport = FakeTransport()
    simulator = make_simulator(location_service, transport)
    simulator.connection.record_attempt(True)
    simulator.add_data_packet(b"first")
    simulator.shutdown()

    assert simulator.sending_worker.process_once() is False
    assert transport.sent == []


# ------------------ threads ------------------ #

def test_pipeline_delivers_saved_packets(location_service):
    transport = FakeTransport()
    simulator = make_simulator(
        location_service, transport,
        save_interval_s=0.02, send_interval_s=0.01, retry_delay_s=0.01,
    )

    try:
        assert simulator.send_coordinates(IMEI, CPF, "ACC1D23") is True
        assert wait_until(lambda: len(transport.sent) >= 4)
    finally:
        simulator.shutdown()

    data_packets = transport.sent[1:]
    assert all(PacketParser.parse(p)["imei"] == IMEI for p in data_packets)
    assert simulator.is_running is False


def test_no_sends_after_shutdown(location_service):
    transport = FakeTransport()
    simulator = make_simulator(
        location_service, transport, save_interval_s=0.01, send_interval_s=0.01,
    )

    try:
        simulator.send_coordinates(IMEI, CPF, "ACC1D23")
        wait_until(lambda: len(transport.sent) >= 2)
    finally:
        simulator.shutdown()

    sent_at_shutdown = len(transport.sent)
    time.sleep(0.1)
    assert len(transport.sent) == sent_at_shutdown


def test_startup_worker_reports_result(location_service, qt_app):
    simulator = make_simulator(
        location_service, FakeTransport(), save_interval_s=60.0, send_interval_s=60.0
    )
    worker = StartupWorker(simulator, IMEI, CPF, "ACC1D23")

    try:
        worker.start()
        assert worker.wait(5000)
        assert simulator.is_running is True
    finally:
        simulator.shutdown()
        worker.wait()


@pytest.mark.parametrize("failures", [1, 3])
def test_startup_worker_survives_failures(location_service, failures):
    simulator = make_simulator(
        location_service, FakeTransport([False] * failures),
        retry_delay_s=0.01, save_interval_s=60.0, send_interval_s=60.0,
    )
    worker = StartupWorker(simulator, IMEI, CPF, "ACC1D23")

    try:
        worker.start()
        assert worker.wait(5000)
        assert len(simulator.transport.sent) == failures + 1
    finally:
        simulator.shutdown()
        worker.wait()
