from champsim.deadlock import format_deadlock, range_print_deadlock


def pack(entry):
    return (entry["addr"], entry["id"])


def test_empty_range():
    assert format_deadlock([], "RQ", "{} {}", pack) == "RQ empty\n\n"


def test_entries_are_numbered():
    entries = [{"addr": "0xdead", "id": 1}, {"addr": "0xbeef", "id": 2}]
    text = format_deadlock(entries, "RQ", "address: {} instr_id: {}", pack)
    assert text == (
        "[RQ] entry:   0 address: 0xdead instr_id: 1\n"
        "[RQ] entry:   1 address: 0xbeef instr_id: 2\n"
        "\n"
    )


def test_none_entries_render_empty():
    entries = [None, {"addr": "a", "id": 7}]
    lines = format_deadlock(entries, "WQ", "{} {}", pack).splitlines()
    assert lines[0] == "[WQ] entry:   0 empty"
    assert lines[1] == "[WQ] entry:   1 a 7"


def test_index_right_aligned_to_three():
    entries = [{"addr": i, "id": i} for i in range(12)]
    lines = format_deadlock(entries, "MSHR", "{} {}", pack).splitlines()
    assert lines[11].startswith("[MSHR] entry:  11 ")
    assert len(lines) == 13
    assert lines[-1] == ""


def test_print_matches_format(capsys):
    entries = [{"addr": 1, "id": 2}]
    range_print_deadlock(entries, "PQ", "{} {}", pack)
    assert capsys.readouterr().out == format_deadlock(entries, "PQ", "{} {}", pack)