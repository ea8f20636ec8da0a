# -*- coding: utf-8 -*-
import pytest

from blob2spo.config import Config
from blob2spo.endpoints import EndpointDescriptor
from blob2spo.errors import ConfigError, TransferError, SourceReadError
from blob2spo.monitoring import ProcessStatus
from blob2spo.spo_api import ChunkOutcome
from blob2spo.transfer import TransferEngine, TransferSession, TransferState, copy_blob_to_spo, MIB

from .conftest import FakeSPOClient, fragments_of

DESTINATION = EndpointDescriptor("contoso", "Team", "/sites/Team/Shared Documents", "data.bin")


def payload(size):
    return bytes(i % 251 for i in range(size))


def run(data, threshold, fragment_size, spo=None, callback=None):
    spo = spo or FakeSPOClient()
    engine = TransferEngine(spo, chunk_threshold=threshold, callback=callback)
    session = engine.run(fragments_of(data, fragment_size), DESTINATION)
    return spo, session


def test_small_file_uses_single_one_time_save():
    data = payload(37)
    spo, session = run(data, threshold=64, fragment_size=10)

    assert spo.operations() == ['one_time']
    assert spo.calls[0]['data'] == data
    assert session.state is TransferState.DONE
    assert session.has_started_chunked_upload is False
    assert session.upload_session_id is None
    assert session.cumulative_offset == 37


def test_zero_byte_file_creates_empty_destination():
    spo, session = run(b"", threshold=64, fragment_size=10)

    assert spo.operations() == ['one_time']
    assert spo.calls[0]['data'] == b""
    assert session.cumulative_offset == 0


def test_file_equal_to_threshold_uses_chunked_upload():
    data = payload(64)
    spo, session = run(data, threshold=64, fragment_size=16)

    assert spo.operations() == ['one_time', 'start', 'finish']
    assert spo.calls[0]['data'] == b""
    assert spo.calls[1]['data'] == data[:48]
    assert spo.calls[2]['data'] == data[48:]
    assert spo.calls[2]['offset'] == 48
    assert session.has_started_chunked_upload is True
    assert session.cumulative_offset == 64


def test_file_equal_to_threshold_in_one_fragment_keeps_finish_non_empty():
    data = payload(64)
    spo, _ = run(data, threshold=64, fragment_size=64)

    assert spo.operations() == ['one_time', 'start', 'finish']
    assert spo.calls[1]['data'] == data[:63]
    assert spo.calls[2]['data'] == data[63:]


def test_file_one_byte_under_threshold_uses_one_time_save():
    data = payload(63)
    spo, _ = run(data, threshold=64, fragment_size=16)

    assert spo.operations() == ['one_time']
    assert spo.calls[0]['data'] == data


def test_chunked_upload_creates_empty_file_before_start():
    data = payload(100)
    spo, session = run(data, threshold=64, fragment_size=4)

    assert spo.operations() == ['one_time', 'start', 'finish']
    assert spo.calls[0]['data'] == b""
    assert len(spo.calls[1]['data']) == 64
    assert spo.calls[2]['data'] == data[64:]
    assert spo.calls[2]['offset'] == 64
    assert spo.calls[1]['upload_id'] == spo.calls[2]['upload_id'] == session.upload_session_id
    assert session.cumulative_offset == 100


def test_exact_multiple_of_threshold_has_no_empty_final_chunk():
    data = payload(30)
    spo, _ = run(data, threshold=10, fragment_size=5)

    assert spo.operations() == ['one_time', 'start', 'continue', 'finish']
    sizes = [len(call['data']) for call in spo.calls[1:]]
    assert sizes == [10, 10, 10]
    assert [call['offset'] for call in spo.calls[2:]] == [10, 20]


def test_fragment_larger_than_several_chunks_is_carved():
    data = payload(35)
    spo, _ = run(data, threshold=10, fragment_size=35)

    assert spo.operations() == ['one_time', 'start', 'continue', 'continue', 'finish']
    assert [len(call['data']) for call in spo.calls[1:]] == [10, 10, 10, 5]


@pytest.mark.parametrize("size", [1, 9, 10, 11, 19, 20, 21, 47, 100])
@pytest.mark.parametrize("fragment_size", [1, 3, 10, 64])
def test_chunked_bytes_reassemble_without_gaps(size, fragment_size):
    threshold = 10
    data = payload(size)
    spo, session = run(data, threshold=threshold, fragment_size=fragment_size)

    if size < threshold:
        assert spo.operations() == ['one_time']
        assert spo.calls[0]['data'] == data
        return

    chunked = [call for call in spo.calls if call['operation'] in ('start', 'continue', 'finish')]
    assert chunked[0]['operation'] == 'start'
    assert chunked[-1]['operation'] == 'finish'
    assert b"".join(call['data'] for call in chunked) == data

    expected_offset = len(chunked[0]['data'])
    for call in chunked[1:]:
        assert call['offset'] == expected_offset
        assert call['data']
        expected_offset += len(call['data'])
    assert session.cumulative_offset == size
    assert all(len(call['data']) <= threshold for call in chunked)


def test_hundred_mib_file_with_64_mib_threshold():
    block = b"\x00" * (4 * MIB)
    fragments = (block for _ in range(25))
    spo = FakeSPOClient()

    session = TransferEngine(spo, chunk_threshold=64 * MIB).run(fragments, DESTINATION)

    assert spo.operations() == ['one_time', 'start', 'finish']
    assert len(spo.calls[0]['data']) == 0
    assert len(spo.calls[1]['data']) == 64 * MIB
    assert spo.calls[1]['offset'] is None
    assert len(spo.calls[2]['data']) == 36 * MIB
    assert spo.calls[2]['offset'] == 64 * MIB
    assert session.cumulative_offset == 100 * MIB


def test_ten_mib_file_with_64_mib_threshold():
    block = b"\x01" * MIB
    spo = FakeSPOClient()

    TransferEngine(spo, chunk_threshold=64 * MIB).run((block for _ in range(10)), DESTINATION)

    assert spo.operations() == ['one_time']
    assert len(spo.calls[0]['data']) == 10 * MIB


def test_rejected_continue_aborts_without_reading_further():
    rejected = ChunkOutcome.rejected(403, "-2147024891, System.UnauthorizedAccessException", "Access denied.")
    spo = FakeSPOClient(outcomes={'continue': rejected})
    consumed = []

    def source():
        for i in range(10):
            consumed.append(i)
            yield b"x" * 5

    engine = TransferEngine(spo, chunk_threshold=10)
    with pytest.raises(TransferError) as excinfo:
        engine.run(source(), DESTINATION)

    assert excinfo.value.operation == 'continue'
    assert excinfo.value.status_code == 403
    assert "Access denied." in str(excinfo.value)
    assert spo.operations() == ['one_time', 'start', 'continue']
    # start fires when fragment 3 arrives, continue when fragment 5 arrives
    assert len(consumed) == 5


def test_rejected_empty_file_creation_stops_before_start():
    spo = FakeSPOClient(outcomes={'one_time': ChunkOutcome.rejected(404, "NotFound", "Folder not found")})

    with pytest.raises(TransferError) as excinfo:
        TransferEngine(spo, chunk_threshold=10).run(fragments_of(payload(25), 5), DESTINATION)

    assert excinfo.value.operation == 'one_time'
    assert spo.operations() == ['one_time']


def test_source_error_marks_session_failed():
    def broken_source():
        yield b"abc"
        raise SourceReadError("stream reset")

    spo = FakeSPOClient()
    with pytest.raises(SourceReadError):
        TransferEngine(spo, chunk_threshold=10).run(broken_source(), DESTINATION)
    assert spo.calls == []


def test_status_callback_sequence_for_chunked_upload():
    events = []
    run(payload(25), threshold=10, fragment_size=25,
        callback=lambda status, message, size: events.append(status))

    assert events == [
        ProcessStatus.START_DOWNLOAD,
        ProcessStatus.DOWNLOADING,
        ProcessStatus.START_UPLOAD,
        ProcessStatus.UPLOAD_COMPLETE,
        ProcessStatus.CONTINUE_UPLOAD,
        ProcessStatus.UPLOAD_COMPLETE,
        ProcessStatus.DOWNLOAD_COMPLETE,
        ProcessStatus.FINISH_UPLOAD,
        ProcessStatus.UPLOAD_COMPLETE,
    ]


def test_statistics_count_writes():
    _, session = run(payload(30), threshold=10, fragment_size=5)

    stats = session.stats.stats
    assert stats['fragments_read'] == 6
    assert stats['bytes_downloaded'] == 30
    assert stats['bytes_uploaded'] == 30
    assert stats['one_time_writes'] == 1
    assert stats['start_writes'] == 1
    assert stats['continue_writes'] == 1
    assert stats['finish_writes'] == 1
    assert session.stats.total_writes == 4


def test_invalid_threshold_rejected():
    with pytest.raises(ConfigError):
        TransferEngine(FakeSPOClient(), chunk_threshold=0)


class FakeSource:
    source_id = "acct/container/folder/data.bin"

    def __init__(self, data):
        self.data = data

    def open_stream(self):
        return fragments_of(self.data, 7)


def test_copy_blob_to_spo_wires_destination_from_config():
    config = Config("tenant", "client", "secret", "acct", "container", "folder/data.bin",
                    "contoso", "Team", "/sites/Team/Shared Documents", chunk_size_mb=1)
    spo = FakeSPOClient()

    session = copy_blob_to_spo(config, source=FakeSource(b"hello world"), spo_client=spo)

    assert session.source_id == "acct/container/folder/data.bin"
    assert spo.operations() == ['one_time']
    descriptor = spo.calls[0]['descriptor']
    assert descriptor.domain == "contoso"
    assert descriptor.site == "Team"
    assert descriptor.server_relative_path == "/sites/Team/Shared Documents"
    assert descriptor.file_name == "data.bin"
    assert spo.calls[0]['data'] == b"hello world"


def test_take_returns_bytes_and_shrinks_buffer_in_place():
    session = TransferSession("src", 4)
    session.buffer.extend(b"abcdefghij")
    buffer = session.buffer

    chunk = TransferEngine._take(session, 4)

    assert type(chunk) is bytes
    assert chunk == b"abcd"
    assert session.buffer is buffer
    assert session.buffer == bytearray(b"efghij")


def test_chunks_handed_to_writer_are_bytes():
    seen = []

    class TypeRecordingClient(FakeSPOClient):
        def _record(self, operation, descriptor, data):
            seen.append(type(data))
            return super()._record(operation, descriptor, data)

    run(payload(25), threshold=10, fragment_size=25, spo=TypeRecordingClient())

    assert seen == [bytes, bytes, bytes, bytes]
