"""Tests for GNMIClient reads and writes."""
import json

import pytest

from fakes import (
    TIME_PATH,
    NtpProvider,
    SrcIfItems,
    TimeItems,
    json_response,
    nil_response,
    time_items,
)
from gnmi_network_switch.gnmi.errors import (
    DeviceUnavailableError,
    NotFoundError,
    ProtocolViolationError,
    SchemaValidationError,
    UnexpectedValueTypeError,
    ValueNilError,
    WriteError,
)
from gnmi_network_switch.gnmi.path import Path, parse_path
from gnmi_network_switch.gnmi.schema import (
    DataType,
    Encoding,
    GetResponse,
    Notification,
    TypedValue,
    Update,
    ValueKind,
)
from gnmi_network_switch.gnmi.transport import StatusCode, TransportError


class TestGet:
    """Tests for reading subtrees."""

    @pytest.mark.asyncio
    async def test_get(self, transport, make_client):
        transport.get_responses.append(json_response({
            "adminSt": "enabled",
            "prov-items": {"NtpProvider-list": [{"name": "147.204.9.202", "vrf": "management"}]},
        }))
        client = make_client(transport)

        node = await client.get(TIME_PATH, TimeItems)

        assert isinstance(node, TimeItems)
        assert node.prov_items.providers["147.204.9.202"].vrf == "management"
        request = transport.get_requests[0]
        assert request.paths == [parse_path(TIME_PATH)]
        assert request.type == DataType.CONFIG
        assert request.encoding == Encoding.JSON

    @pytest.mark.asyncio
    async def test_get_state(self, transport, make_client):
        transport.get_responses.append(json_response({"srcIf": "mgmt0"}))
        client = make_client(transport)
        node = await client.get_state(f"{TIME_PATH}/srcIf-items", SrcIfItems)
        assert node.src_if == "mgmt0"
        assert transport.get_requests[0].type == DataType.STATE

    @pytest.mark.asyncio
    async def test_unconfigured_path_without_updates(self, transport, make_client):
        """A valid but unconfigured path comes back as a notification with no updates."""
        transport.get_responses.append(GetResponse(notifications=[Notification(updates=[])]))
        client = make_client(transport)
        with pytest.raises(ValueNilError) as exc_info:
            await client.get(f"{TIME_PATH}/srcIf-items", SrcIfItems)
        assert exc_info.value.path == "System/time-items/srcIf-items"

    @pytest.mark.parametrize("payload", [b"", b"   ", b"\n"])
    @pytest.mark.asyncio
    async def test_unconfigured_path_with_empty_value(self, transport, make_client, payload):
        transport.get_responses.append(json_response(payload))
        client = make_client(transport)
        with pytest.raises(ValueNilError):
            await client.get(TIME_PATH, TimeItems)

    @pytest.mark.asyncio
    async def test_no_notifications(self, transport, make_client):
        transport.get_responses.append(GetResponse(notifications=[]))
        client = make_client(transport)
        with pytest.raises(NotFoundError):
            await client.get(TIME_PATH, TimeItems)

    @pytest.mark.asyncio
    async def test_too_many_notifications(self, transport, make_client):
        response = json_response({})
        response.notifications.append(Notification())
        transport.get_responses.append(response)
        client = make_client(transport)
        with pytest.raises(ProtocolViolationError):
            await client.get(TIME_PATH, TimeItems)

    @pytest.mark.asyncio
    async def test_too_many_updates(self, transport, make_client):
        val = TypedValue(ValueKind.JSON, b"{}")
        transport.get_responses.append(GetResponse(notifications=[
            Notification(updates=[Update(Path(), val), Update(Path(), val)])
        ]))
        client = make_client(transport)
        with pytest.raises(ProtocolViolationError, match="unexpected number of updates"):
            await client.get(TIME_PATH, TimeItems)

    @pytest.mark.asyncio
    async def test_wrong_value_variant(self, transport, make_client):
        transport.get_responses.append(json_response({}, encoding=Encoding.JSON_IETF))
        client = make_client(transport, encoding=Encoding.JSON)
        with pytest.raises(UnexpectedValueTypeError):
            await client.get(TIME_PATH, TimeItems)

    @pytest.mark.asyncio
    async def test_unavailable(self, transport, make_client):
        transport.get_responses.append(TransportError(StatusCode.UNAVAILABLE, "eof"))
        client = make_client(transport)
        with pytest.raises(DeviceUnavailableError):
            await client.get(TIME_PATH, TimeItems)

    @pytest.mark.asyncio
    async def test_get_many(self, transport, make_client):
        transport.get_responses.append(GetResponse(notifications=[
            json_response({"adminSt": "enabled"}).notifications[0],
            json_response({"srcIf": "mgmt0"}).notifications[0],
        ]))
        client = make_client(transport)

        time, src = await client.get_many([
            (TIME_PATH, TimeItems),
            (f"{TIME_PATH}/srcIf-items", SrcIfItems),
        ])

        assert time.admin_st.value == "enabled"
        assert src.src_if == "mgmt0"
        assert len(transport.get_requests) == 1
        assert len(transport.get_requests[0].paths) == 2

    @pytest.mark.asyncio
    async def test_get_many_empty(self, transport, make_client):
        client = make_client(transport)
        assert await client.get_many([]) == []
        assert transport.get_requests == []


class TestReplace:
    """Tests for replace_subtree."""

    @pytest.mark.asyncio
    async def test_replace(self, transport, make_client):
        transport.get_responses.append(nil_response())
        client = make_client(transport)
        assert await client.replace_subtree(TIME_PATH, time_items("10.0.0.1")) is True

        assert transport.get_requests[0].paths == [parse_path(TIME_PATH)]
        (request,) = transport.set_requests
        assert request.deletes == [] and request.updates == []
        (update,) = request.replaces
        assert update.path == parse_path(TIME_PATH)
        assert update.val.kind == ValueKind.JSON
        assert json.loads(update.val.value) == {
            "prov-items": {"NtpProvider-list": [{"name": "10.0.0.1", "vrf": "management"}]},
        }

    @pytest.mark.asyncio
    async def test_replace_uses_negotiated_encoding(self, transport, make_client):
        transport.get_responses.append(nil_response())
        client = make_client(transport, encoding=Encoding.JSON_IETF)
        await client.replace_subtree(TIME_PATH, TimeItems(master_stratum=4))
        assert transport.set_requests[0].replaces[0].val.kind == ValueKind.JSON_IETF

    @pytest.mark.asyncio
    async def test_up_to_date_not_sent(self, transport, make_client):
        """Nothing is written when the device already holds the desired tree."""
        desired = time_items("10.0.0.1", master_stratum=4)
        transport.get_responses.append(json_response(desired.to_yang()))
        client = make_client(transport)

        assert await client.replace_subtree(TIME_PATH, desired) is False
        assert transport.set_requests == []

    @pytest.mark.asyncio
    async def test_different_value_is_replaced(self, transport, make_client):
        transport.get_responses.append(json_response(time_items("10.0.0.2").to_yang()))
        client = make_client(transport)
        await client.replace_subtree(TIME_PATH, time_items("10.0.0.1"))
        assert len(transport.set_requests) == 1

    @pytest.mark.asyncio
    async def test_empty_value_is_replaced(self, transport, make_client):
        """An empty Get value counts as unconfigured."""
        transport.get_responses.append(json_response(b""))
        client = make_client(transport)
        await client.replace_subtree(TIME_PATH, TimeItems(master_stratum=4))
        assert len(transport.set_requests) == 1

    @pytest.mark.asyncio
    async def test_read_error_propagates(self, transport, make_client):
        transport.get_responses.append(GetResponse(notifications=[]))
        client = make_client(transport)
        with pytest.raises(NotFoundError):
            await client.replace_subtree(TIME_PATH, TimeItems(master_stratum=4))
        assert transport.set_requests == []

    @pytest.mark.asyncio
    async def test_invalid_tree_not_sent(self, transport, make_client):
        client = make_client(transport)
        with pytest.raises(SchemaValidationError) as exc_info:
            await client.replace_subtree(TIME_PATH, TimeItems.model_construct(master_stratum=0))
        assert exc_info.value.operation == "replace"
        assert transport.get_requests == []
        assert transport.set_requests == []

    @pytest.mark.asyncio
    async def test_write_error(self, transport, make_client):
        transport.get_responses.append(nil_response())
        transport.set_errors[1] = TransportError(StatusCode.INVALID_ARGUMENT, "bad value")
        client = make_client(transport)
        with pytest.raises(WriteError) as exc_info:
            await client.replace_subtree(TIME_PATH, TimeItems(master_stratum=4))
        assert exc_info.value.operation == "replace"
        assert isinstance(exc_info.value.__cause__, TransportError)

    @pytest.mark.asyncio
    async def test_dry_run(self, transport, make_client):
        transport.get_responses.append(nil_response())
        client = make_client(transport, dry_run=True)
        assert await client.replace_subtree(TIME_PATH, TimeItems(master_stratum=4)) is True
        assert transport.set_requests == []


class TestPatch:
    """Tests for patch_subtree."""

    @pytest.mark.asyncio
    async def test_patch_sends_update(self, transport, make_client):
        transport.get_responses.append(json_response({"masterStratum": 3}))
        client = make_client(transport)
        assert await client.patch_subtree(TIME_PATH, TimeItems(admin_st="enabled")) is True

        (request,) = transport.set_requests
        assert request.deletes == [] and request.replaces == []
        (update,) = request.updates
        assert update.path == parse_path(TIME_PATH)
        assert json.loads(update.val.value) == {"adminSt": "enabled"}

    @pytest.mark.asyncio
    async def test_unconfigured_is_patched(self, transport, make_client):
        transport.get_responses.append(nil_response())
        client = make_client(transport)
        await client.patch_subtree(TIME_PATH, TimeItems(master_stratum=4))
        assert len(transport.set_requests[0].updates) == 1

    @pytest.mark.asyncio
    async def test_up_to_date_not_sent(self, transport, make_client):
        transport.get_responses.append(json_response({"masterStratum": 4}))
        client = make_client(transport)
        assert await client.patch_subtree(TIME_PATH, TimeItems(master_stratum=4)) is False
        assert transport.set_requests == []

    @pytest.mark.asyncio
    async def test_unavailable(self, transport, make_client):
        transport.get_responses.append(nil_response())
        transport.set_errors[1] = TransportError(StatusCode.UNAVAILABLE, "eof")
        client = make_client(transport)
        with pytest.raises(DeviceUnavailableError) as exc_info:
            await client.patch_subtree(TIME_PATH, TimeItems(master_stratum=4))
        assert exc_info.value.operation == "patch"


class TestDelete:
    """Tests for delete_subtree."""

    @pytest.mark.asyncio
    async def test_delete(self, transport, make_client):
        client = make_client(transport)
        path = f"{TIME_PATH}/prov-items/NtpProvider-list[name=10.0.0.1]"
        await client.delete_subtree(path, NtpProvider(name="10.0.0.1"))

        (request,) = transport.set_requests
        assert request.deletes == [parse_path(path)]
        assert request.replaces == []

    @pytest.mark.asyncio
    async def test_delete_without_value(self, transport, make_client):
        client = make_client(transport)
        await client.delete_subtree(TIME_PATH)
        assert transport.set_requests[0].deletes == [parse_path(TIME_PATH)]

    @pytest.mark.asyncio
    async def test_defaultable_is_reset(self, transport, make_client):
        transport.get_responses.append(json_response({"srcIf": "mgmt0"}))
        client = make_client(transport)
        await client.delete_subtree(f"{TIME_PATH}/srcIf-items", SrcIfItems(src_if="mgmt0"))

        (request,) = transport.set_requests
        assert request.deletes == []
        assert json.loads(request.replaces[0].val.value) == {"srcIf": "unspecified"}

    @pytest.mark.asyncio
    async def test_defaultable_already_default(self, transport, make_client):
        transport.get_responses.append(json_response({"srcIf": "unspecified"}))
        client = make_client(transport)
        await client.delete_subtree(f"{TIME_PATH}/srcIf-items", SrcIfItems(src_if="mgmt0"))
        assert transport.set_requests == []

    @pytest.mark.asyncio
    async def test_dry_run(self, transport, make_client):
        client = make_client(transport, dry_run=True)
        await client.delete_subtree(TIME_PATH)
        assert transport.set_requests == []

    @pytest.mark.asyncio
    async def test_unavailable(self, transport, make_client):
        transport.set_errors[1] = TransportError(StatusCode.UNAVAILABLE, "eof")
        client = make_client(transport)
        with pytest.raises(DeviceUnavailableError):
            await client.delete_subtree(TIME_PATH)

    @pytest.mark.asyncio
    async def test_close(self, transport, make_client):
        client = make_client(transport)
        await client.close()
        assert transport.closed
