import pytest

from mbslave.endian import NumberKind, from_be, to_be
from mbslave.errors import ModbusError, ModbusStatus
from mbslave.fn_diags import (
    DiagSubfunction,
    comm_event_counter,
    comm_event_log,
    diagnostics,
)
from mbslave.instance import CommEvent, Instance, SerialConfig

FC_DIAGS = 0x08


def diag_req(sub, data=0):
    return bytes([FC_DIAGS]) + to_be(int(sub), NumberKind.U16) + to_be(data, NumberKind.U16)


def word(buf, pos):
    return from_be(buf[pos:pos + 2], NumberKind.U16)


def test_loopback_echoes_request():
    inst = Instance()
    req = bytes([FC_DIAGS, 0x00, 0x00, 0x12, 0x34, 0x56])
    assert diagnostics(inst, req) == req


def test_short_request_rejected():
    with pytest.raises(ModbusError) as err:
        diagnostics(Instance(), bytes([FC_DIAGS, 0x00]))
    assert err.value.status is ModbusStatus.ILLEGAL_DATA_VAL


def test_unknown_subfunction_is_illegal_function():
    with pytest.raises(ModbusError) as err:
        diagnostics(Instance(), diag_req(0x0005))
    assert err.value.status is ModbusStatus.ILLEGAL_FN


def test_missing_instance_is_device_failure():
    with pytest.raises(ModbusError) as err:
        diagnostics(None, diag_req(DiagSubfunction.LOOPBACK))
    assert err.value.status is ModbusStatus.DEV_FAIL


def test_restart_resets_counters_and_logs_restart():
    calls = []
    inst = Instance(serial=SerialConfig(request_restart=lambda: calls.append(1)))
    inst.state.bus_msg_counter = 9
    inst.state.no_resp_counter = 4
    inst.state.is_listen_only = True
    inst.add_comm_event(CommEvent.IS_RECV)

    res = diagnostics(inst, diag_req(DiagSubfunction.RESTART_COMMS_OPT, 0x0000))

    assert res == diag_req(DiagSubfunction.RESTART_COMMS_OPT, 0x0000)
    assert calls == [1]
    assert inst.state.is_listen_only is False
    assert inst.state.bus_msg_counter == 0
    assert inst.state.no_resp_counter == 0
    assert inst.event_log() == [CommEvent.COMM_RESTART, CommEvent.IS_RECV]


def test_restart_with_ff00_clears_log():
    inst = Instance()
    inst.add_comm_event(CommEvent.IS_RECV)
    res = diagnostics(inst, diag_req(DiagSubfunction.RESTART_COMMS_OPT, 0xFF00))
    assert word(res, 3) == 0xFF00
    assert inst.event_log() == []


def test_restart_rejects_other_values():
    with pytest.raises(ModbusError) as err:
        diagnostics(Instance(), diag_req(DiagSubfunction.RESTART_COMMS_OPT, 0x0001))
    assert err.value.status is ModbusStatus.ILLEGAL_DATA_VAL


def test_diagnostic_register_uses_callback():
    inst = Instance(serial=SerialConfig(read_diagnostics=lambda: 0xBEEF))
    res = diagnostics(inst, diag_req(DiagSubfunction.REG))
    assert word(res, 3) == 0xBEEF
    assert res[:3] == diag_req(DiagSubfunction.REG)[:3]


def test_diagnostic_register_defaults_to_zero():
    res = diagnostics(Instance(), diag_req(DiagSubfunction.REG))
    assert word(res, 3) == 0


def test_diagnostic_register_requires_zero_data():
    with pytest.raises(ModbusError) as err:
        diagnostics(Instance(), diag_req(DiagSubfunction.REG, 1))
    assert err.value.status is ModbusStatus.ILLEGAL_DATA_VAL


def test_change_ascii_delimiter():
    inst = Instance()
    req = bytes([FC_DIAGS, 0x00, 0x03, ord("\r"), 0x00])
    assert diagnostics(inst, req) == req
    assert inst.state.ascii_delimiter == ord("\r")


@pytest.mark.parametrize("data", [bytes([0x80, 0x00]), bytes([0x0A, 0x01])])
def test_change_ascii_delimiter_rejects_bad_data(data):
    inst = Instance()
    with pytest.raises(ModbusError) as err:
        diagnostics(inst, bytes([FC_DIAGS, 0x00, 0x03]) + data)
    assert err.value.status is ModbusStatus.ILLEGAL_DATA_VAL
    assert inst.state.ascii_delimiter == ord("\n")


def test_force_listen_only():
    inst = Instance()
    diagnostics(inst, diag_req(DiagSubfunction.FORCE_LISTEN))
    assert inst.state.is_listen_only is True
    assert inst.event_log() == [CommEvent.ENTERED_LISTEN_ONLY]


def test_clear_counters_calls_reset_hook():
    calls = []
    inst = Instance(serial=SerialConfig(reset_diagnostics=lambda: calls.append(1)))
    inst.state.exception_counter = 3
    inst.state.busy_counter = 2
    res = diagnostics(inst, diag_req(DiagSubfunction.CLR_CNTS_N_DIAG_REG))
    assert word(res, 3) == 0
    assert calls == [1]
    assert inst.state.exception_counter == 0
    assert inst.state.busy_counter == 0


@pytest.mark.parametrize(
    "sub, attr",
    [
        (DiagSubfunction.BUS_MSG_COUNT, "bus_msg_counter"),
        (DiagSubfunction.BUS_COMM_ERR_COUNT, "bus_comm_err_counter"),
        (DiagSubfunction.BUS_EXCEPTION_COUNT, "exception_counter"),
        (DiagSubfunction.MSG_COUNT, "msg_counter"),
        (DiagSubfunction.NO_RESP_MSG_COUNT, "no_resp_counter"),
        (DiagSubfunction.NAK_COUNT, "nak_counter"),
        (DiagSubfunction.BUSY_COUNT, "busy_counter"),
        (DiagSubfunction.BUS_OVERRUN_COUNT, "bus_char_overrun_counter"),
    ],
)
def test_counters_are_reported(sub, attr):
    inst = Instance()
    setattr(inst.state, attr, 321)
    res = diagnostics(inst, diag_req(sub))
    assert len(res) == 5
    assert word(res, 1) == sub
    assert word(res, 3) == 321


def test_clear_overrun():
    inst = Instance()
    inst.state.bus_char_overrun_counter = 5
    inst.state.bus_msg_counter = 5
    diagnostics(inst, diag_req(DiagSubfunction.CLR_OVERRUN))
    assert inst.state.bus_char_overrun_counter == 0
    assert inst.state.bus_msg_counter == 5


def test_comm_event_counter():
    inst = Instance()
    inst.state.status = 0xFFFF
    inst.state.comm_event_counter = 42
    res = comm_event_counter(inst, bytes([0x0B]))
    assert res[0] == 0x0B
    assert word(res, 1) == 0xFFFF
    assert word(res, 3) == 42


def test_comm_event_counter_rejects_extra_data():
    with pytest.raises(ModbusError) as err:
        comm_event_counter(Instance(), bytes([0x0B, 0x00]))
    assert err.value.status is ModbusStatus.ILLEGAL_DATA_VAL


def test_comm_event_log_lists_newest_first():
    inst = Instance()
    inst.state.comm_event_counter = 7
    inst.state.bus_msg_counter = 11
    inst.add_comm_event(CommEvent.IS_RECV)
    inst.add_comm_event(CommEvent.IS_RECV | CommEvent.RECV_BROADCAST)

    res = comm_event_log(inst, bytes([0x0C]))

    assert res[0] == 0x0C
    assert res[1] == 6 + 2
    assert word(res, 4) == 7
    assert word(res, 6) == 11
    assert list(res[8:]) == [CommEvent.IS_RECV | CommEvent.RECV_BROADCAST, CommEvent.IS_RECV]
    assert len(res) == 2 + res[1]


def test_comm_event_log_rejects_extra_data():
    with pytest.raises(ModbusError) as err:
        comm_event_log(Instance(), bytes([0x0C, 0x01]))
    assert err.value.status is ModbusStatus.ILLEGAL_DATA_VAL