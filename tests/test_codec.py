"""
Unit tests for the fixed-width record codec.
"""
import pytest

from quibble_engine.codec import (
    decode_master_line,
    decode_snapshot_line,
    decode_transaction_line,
    encode_master_line,
    encode_snapshot_end,
    encode_snapshot_line,
    encode_transaction_line,
)
from quibble_engine.models import (
    CODE_CREATE,
    CODE_LOGOUT,
    CODE_SELL,
    Event,
    RecordFormatError,
    Transaction,
)


# -----------------------------------------------------------------------
# Test: master-events lines
# -----------------------------------------------------------------------
class TestMasterLine:
    def test_encode_layout(self):
        line = encode_master_line(Event("Concert", "160101", 10))
        assert line == f"160101 00010 {'Concert':<20}"
        assert len(line) == 33
        assert line[6] == " " and line[12] == " "

    def test_encode_pads_short_date_and_count(self):
        line = encode_master_line(Event("X", "1231", 7))
        assert line.startswith("001231 00007 X")

    def test_decode_trims_name(self):
        event = decode_master_line(f"160101 00010 {'Concert':<20}\n")
        assert event.name == "Concert"
        assert event.date == "160101"
        assert event.ticket_count == 10

    def test_decode_accepts_unpadded_name(self):
        assert decode_master_line("160101 00010 Concert").name == "Concert"

    def test_decode_keeps_inner_spaces(self):
        assert decode_master_line("160101 00010 Jazz Night").name == "Jazz Night"

    def test_decode_handles_crlf(self):
        assert decode_master_line("160101 00010 Concert\r\n").name == "Concert"

    @pytest.mark.parametrize("line", [
        "",
        "16010 00010 Concert",          # short date
        "160101 0010 Concert",          # short count
        "160101 000a0 Concert",         # non-numeric count
        "16O101 00010 Concert",         # letter O in date
        "160101-00010 Concert",         # wrong separator
        "160101 00010 ",                # no name
        "160101 00010 " + " " * 20,      # blank name
        "160101 00010 " + "N" * 21,     # name too long
    ])
    def test_decode_rejects_malformed(self, line):
        with pytest.raises(RecordFormatError, match="(?i)master record"):
            decode_master_line(line)

    def test_decode_rejects_non_ascii_digits(self):
        with pytest.raises(RecordFormatError):
            decode_master_line("１６0101 00010 Concert")


# -----------------------------------------------------------------------
# Test: current-events lines
# -----------------------------------------------------------------------
class TestSnapshotLine:
    def test_encode_layout(self):
        line = encode_snapshot_line(Event("Concert", "160101", 7))
        assert line == f"{'Concert':<20} 00007"
        assert len(line) == 26
        assert line[20] == " "

    def test_end_sentinel(self):
        assert encode_snapshot_end() == f"{'END':<20} 00000"

    def test_decode(self):
        assert decode_snapshot_line(f"{'Concert':<20} 00007\n") == ("Concert", 7)

    def test_decode_end_sentinel(self):
        assert decode_snapshot_line(encode_snapshot_end()) == ("END", 0)

    @pytest.mark.parametrize("line", [
        "Concert 00007",
        f"{'Concert':<20} 0007",
        f"{'Concert':<20} 000070",
        " " * 20 + " 00007",
    ])
    def test_decode_rejects_malformed(self, line):
        with pytest.raises(RecordFormatError):
            decode_snapshot_line(line)


# -----------------------------------------------------------------------
# Test: merged-transactions lines
# -----------------------------------------------------------------------
class TestTransactionLine:
    def test_encode_layout(self):
        line = encode_transaction_line(Transaction(CODE_SELL, "Concert", "160101", 3))
        assert line == f"01 {'Concert':<20} 160101 00003"
        assert len(line) == 36
        assert (line[2], line[23], line[30]) == (" ", " ", " ")

    def test_encode_logout(self):
        assert encode_transaction_line(Transaction.logout()) == (
            "00" + " " * 22 + "000000 00000"
        )

    def test_decode_sell(self):
        txn = decode_transaction_line(f"01 {'Concert':<20} 160101 00003\n")
        assert txn == Transaction(CODE_SELL, "Concert", "160101", 3)

    def test_decode_logout_with_blank_name(self):
        txn = decode_transaction_line(encode_transaction_line(Transaction.logout()))
        assert txn.code == CODE_LOGOUT
        assert txn.event_name == ""

    def test_decode_wide_ticket_tail(self):
        txn = decode_transaction_line(f"03 {'Big Show':<20} 170101 123456")
        assert txn.code == CODE_CREATE
        assert txn.ticket_count == 123456

    @pytest.mark.parametrize("line", [
        f"1 {'Concert':<20} 160101 00003",         # one-digit code
        f"01 {'Concert':<19} 160101 00003",        # name field 19 wide
        f"01 {'Concert':<20} 16010 00003",         # short date
        f"01 {'Concert':<20} 160101 0003",         # short count
        f"01 {'Concert':<20} 160101 00003 ",       # trailing junk
        f"0x {'Concert':<20} 160101 00003",        # non-numeric code
        f"01 {'':<20} 160101 00003",                    # empty name on sell
    ])
    def test_decode_rejects_malformed(self, line):
        with pytest.raises(RecordFormatError):
            decode_transaction_line(line)

    def test_decode_rejects_unknown_code(self):
        with pytest.raises(RecordFormatError, match="Invalid transaction code"):
            decode_transaction_line(f"07 {'Concert':<20} 160101 00003")

    def test_record_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_transaction_line("garbage")
