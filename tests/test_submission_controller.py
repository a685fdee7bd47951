import asyncio

import httpx
import pytest

from index_console.exceptions import SubmissionInProgressError
from index_console.submission import (
    DocumentBuffer,
    HttpIndexingClient,
    KeyedValues,
    Selection,
    SubmissionController,
    WorkflowPhase,
)


def make_client(handler, requests):
    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return HttpIndexingClient("http://backend", transport=httpx.MockTransport(record))


class GatedClient:
    """Blocks every index call until `release` is set."""

    def __init__(self, count: int = 2):
        self.release = asyncio.Event()
        self.count = count
        self.calls = []

    async def index_json(self, schema_name, index_name, document):
        self.calls.append((schema_name, index_name, document.value))
        await self.release.wait()
        return self.count

    async def list_schemas(self):
        return KeyedValues({})

    async def list_indexes(self, schema_name):
        return KeyedValues({})


@pytest.mark.asyncio
async def test_successful_submission_reports_count():
    requests = []
    client = make_client(lambda request: httpx.Response(200, json=3), requests)
    controller = SubmissionController(client)
    states = []
    controller.subscribe(states.append)
    buffer = DocumentBuffer('{"a":1}')

    state = await controller.run(Selection("s1", "i1"), buffer)

    assert state.phase == WorkflowPhase.SUCCEEDED
    assert state.message == "3 records have been indexed."
    assert state.spinning is False
    assert state.error is False
    assert [s.phase for s in states] == [WorkflowPhase.VALIDATING, WorkflowPhase.SUBMITTING, WorkflowPhase.SUCCEEDED]
    assert [s.spinning for s in states] == [True, True, False]
    assert states[0].message == "Parsing..."

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/ws/indexes/s1/i1/json"
    assert request.headers["content-type"] == "application/json"
    assert request.content == b'{"a":1}'
    assert buffer.text == '{\n  "a": 1\n}'
    await client.aclose()


@pytest.mark.asyncio
async def test_missing_schema_never_reaches_network():
    requests = []
    client = make_client(lambda request: httpx.Response(200, json=1), requests)
    controller = SubmissionController(client)
    buffer = DocumentBuffer('{"a": 1}')

    state = await controller.run(Selection(None, "i1"), buffer)

    assert requests == []
    assert state.phase == WorkflowPhase.IDLE
    assert state.message == "Please select a schema."
    assert state.error is True
    assert state.spinning is False
    assert buffer.text == '{"a": 1}'
    await client.aclose()


@pytest.mark.asyncio
async def test_missing_index_never_reaches_network():
    requests = []
    client = make_client(lambda request: httpx.Response(200, json=1), requests)
    controller = SubmissionController(client)

    assert controller.submit(Selection("s1", ""), DocumentBuffer("{}")) is None
    assert requests == []
    assert controller.state.phase == WorkflowPhase.IDLE
    assert controller.state.message == "Please select an index."
    await client.aclose()


@pytest.mark.asyncio
async def test_invalid_json_fails_without_request():
    requests = []
    client = make_client(lambda request: httpx.Response(200, json=1), requests)
    controller = SubmissionController(client)
    buffer = DocumentBuffer("not json")

    state = await controller.run(Selection("s1", "i1"), buffer)

    assert requests == []
    assert state.phase == WorkflowPhase.FAILED
    assert state.message.startswith("Expecting value")
    assert state.spinning is False
    assert buffer.text == "not json"
    await client.aclose()


@pytest.mark.asyncio
async def test_empty_text_fails_with_nothing_to_index():
    controller = SubmissionController(GatedClient())
    state = await controller.run(Selection("s1", "i1"), DocumentBuffer(""))
    assert state.phase == WorkflowPhase.FAILED
    assert state.message == "Nothing to index"


@pytest.mark.asyncio
async def test_backend_error_text_is_surfaced():
    requests = []
    client = make_client(lambda request: httpx.Response(500, json={"detail": "Index is read-only"}), requests)
    controller = SubmissionController(client)
    buffer = DocumentBuffer("[1, 2]")

    state = await controller.run(Selection("s1", "i1"), buffer)

    assert state.phase == WorkflowPhase.FAILED
    assert state.message == "Index is read-only"
    assert state.error is True
    assert state.spinning is False
    # Canonical text stays even though indexing failed.
    assert buffer.text == "[\n  1,\n  2\n]"
    await client.aclose()


@pytest.mark.asyncio
async def test_transport_error_is_surfaced():
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    client = make_client(refuse, [])
    controller = SubmissionController(client)
    state = await controller.run(Selection("s1", "i1"), DocumentBuffer("{}"))
    assert state.phase == WorkflowPhase.FAILED
    assert state.message == "Connection refused"
    await client.aclose()


@pytest.mark.asyncio
async def test_overlapping_submission_is_rejected():
    client = GatedClient(count=2)
    controller = SubmissionController(client)
    selection = Selection("s1", "i1")

    handle = controller.submit(selection, DocumentBuffer('{"a": 1}'))
    assert handle is not None
    assert controller.state.phase == WorkflowPhase.SUBMITTING
    assert controller.state.spinning is True

    with pytest.raises(SubmissionInProgressError):
        controller.submit(selection, DocumentBuffer('{"b": 2}'))

    client.release.set()
    state = await handle
    assert state.phase == WorkflowPhase.SUCCEEDED
    assert state.message == "2 records have been indexed."
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_replace_cancels_stale_submission():
    client = GatedClient(count=1)
    controller = SubmissionController(client)
    states = []
    controller.subscribe(states.append)
    selection = Selection("s1", "i1")

    first = controller.submit(selection, DocumentBuffer('{"a": 1}'))
    await asyncio.sleep(0)
    second = controller.submit(selection, DocumentBuffer('{"b": 2}'), replace=True)

    stale = await first
    assert first.cancelled()
    assert stale.phase == WorkflowPhase.FAILED
    assert stale.message == "Submission cancelled."
    assert stale.spinning is False
    assert controller.state.phase == WorkflowPhase.SUBMITTING

    client.release.set()
    final = await second
    assert final.phase == WorkflowPhase.SUCCEEDED
    assert final.message == "One record has been indexed."
    assert [s.phase for s in states] == [
        WorkflowPhase.VALIDATING,
        WorkflowPhase.SUBMITTING,
        WorkflowPhase.FAILED,
        WorkflowPhase.IDLE,
        WorkflowPhase.VALIDATING,
        WorkflowPhase.SUBMITTING,
        WorkflowPhase.SUCCEEDED,
    ]
    assert [call[2] for call in client.calls] == [{"a": 1}, {"b": 2}]


@pytest.mark.asyncio
async def test_cancel_clears_spinner_and_ignores_late_outcome():
    client = GatedClient(count=4)
    controller = SubmissionController(client)

    handle = controller.submit(Selection("s1", "i1"), DocumentBuffer("{}"))
    await asyncio.sleep(0)
    assert controller.cancel() is True
    assert controller.state.phase == WorkflowPhase.FAILED
    assert controller.state.message == "Submission cancelled."
    assert controller.state.spinning is False

    client.release.set()
    state = await handle
    await asyncio.sleep(0)
    assert state.phase == WorkflowPhase.FAILED
    assert controller.state.message == "Submission cancelled."
    assert controller.cancel() is False


@pytest.mark.asyncio
async def test_resubmit_after_failure_passes_through_idle():
    client = GatedClient(count=0)
    client.release.set()
    controller = SubmissionController(client)
    selection = Selection("s1", "i1")

    failed = await controller.run(selection, DocumentBuffer("oops"))
    assert failed.phase == WorkflowPhase.FAILED

    states = []
    controller.subscribe(states.append)
    state = await controller.run(selection, DocumentBuffer("{}"))
    assert state.message == "Nothing has been indexed."
    assert states[0].phase == WorkflowPhase.IDLE
    assert states[0].message is None


@pytest.mark.asyncio
async def test_malformed_count_fails_the_submission():
    client = GatedClient(count=-1)
    client.release.set()
    controller = SubmissionController(client)

    handle = controller.submit(Selection("s1", "i1"), DocumentBuffer("{}"))
    state = await handle
    assert state.phase == WorkflowPhase.FAILED
    assert state.spinning is False
    assert state.error is True
    assert state.message.startswith("Indexed count must be")
    assert controller.state == state


@pytest.mark.asyncio
async def test_externally_cancelled_task_settles_as_cancelled():
    client = GatedClient()
    controller = SubmissionController(client)

    handle = controller.submit(Selection("s1", "i1"), DocumentBuffer("{}"))
    await asyncio.sleep(0)
    handle._task.cancel()
    state = await handle
    assert handle.cancelled()
    assert state.phase == WorkflowPhase.FAILED
    assert state.message == "Submission cancelled."
    assert controller.state == state
