import pytest

from chat_core.domain.exceptions import NetworkError, ValidationError
from chat_core.domain.model_gate import ModelGate
from chat_core.domain.models import ModelState

from fakes import FakeBackend


@pytest.mark.asyncio
async def test_failed_load_then_successful_load():
    backend = FakeBackend(load_results=[False, True])
    gate = ModelGate(backend)
    assert gate.state is ModelState.UNLOADED

    assert await gate.load("/models/a.gguf") is False
    assert gate.state is ModelState.UNLOADED
    assert gate.last_error is not None
    assert gate.last_error.code == "MODEL_LOAD_REJECTED"

    assert await gate.load("/models/a.gguf") is True
    assert gate.state is ModelState.LOADED
    assert gate.model_path == "/models/a.gguf"
    assert gate.last_error is None
    assert backend.loaded_paths == ["/models/a.gguf", "/models/a.gguf"]


@pytest.mark.asyncio
async def test_transport_fault_leaves_gate_unloaded():
    gate = ModelGate(FakeBackend(load_results=[NetworkError(code="NETWORK_ERROR", message="refused")]))
    assert await gate.load("/models/a.gguf") is False
    assert gate.state is ModelState.UNLOADED
    assert gate.last_error.code == "NETWORK_ERROR"


@pytest.mark.asyncio
async def test_unexpected_fault_is_reported_as_load_failure():
    gate = ModelGate(FakeBackend(load_results=[RuntimeError("panic")]))
    assert await gate.load("/models/a.gguf") is False
    assert gate.last_error.code == "MODEL_LOAD_FAILED"


@pytest.mark.asyncio
async def test_eject_is_local_and_idempotent():
    backend = FakeBackend()
    gate = ModelGate(backend)
    gate.eject()
    assert gate.state is ModelState.UNLOADED

    await gate.load("/models/a.gguf")
    gate.eject()
    assert gate.state is ModelState.UNLOADED
    assert gate.model_path is None
    assert backend.loaded_paths == ["/models/a.gguf"]


@pytest.mark.asyncio
async def test_load_while_loaded_is_rejected():
    gate = ModelGate(FakeBackend())
    await gate.load("/models/a.gguf")
    with pytest.raises(ValidationError) as exc:
        await gate.load("/models/b.gguf")
    assert exc.value.code == "MODEL_ALREADY_LOADED"
    assert gate.model_path == "/models/a.gguf"
