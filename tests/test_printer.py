from ponscript.pon_parser import parse_script
from ponscript.pon_printer import Printer


def test_pformat_each_kind():
    src = "\n".join([
        ":start",
        ";bg{\"file\": \"a.png\", \"x\": 1}",
        "-tv.a = 1",
        "=tv.a",
        "h$",
        "---",
        "tv.b = 1",
        "tv.c = 2",
        "---",
    ])
    out = Printer().pformat_all(parse_script(src)).split("\n")
    assert out == [
        ":start",
        ";bg{\"file\": \"a.png\", \"x\": 1}",
        "-tv.a = 1",
        "=tv.a",
        "ch 'h'",
        "br",
        "---",
        "tv.b = 1",
        "tv.c = 2",
        "---",
    ]


def test_show_lines_prefixes_source_line():
    tags = parse_script("\n:a")
    assert Printer(show_lines=True).pformat(tags[0]) == "   2 | :a"


def test_command_roundtrips_through_parser():
    tag = parse_script(";wait{time: 500, skip: true}")[0]
    text = Printer().pformat(tag)
    again = parse_script(text)[0]
    assert again.name == "wait"
    assert again.values["time"] == 500
    assert again.values["skip"] is True
