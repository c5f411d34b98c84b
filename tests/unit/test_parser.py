"""
Module: tests/unit/test_parser.py

What:
    Exercise :func:`emlparse.parse_message` end to end: defaults, single-part
    and multipart messages, nested multiparts and the part tree, depth
    limiting, malformed input, and concurrent use.

Why:
    The orchestrator is the only entry point most callers use; it must apply
    every stage in the right order and never raise.

How:
    Parse inline messages and the sample files under ``tests/data`` and assert
    on the resulting :class:`ParsedEmail` fields.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from emlparse import ParserConfig, parse_message
from emlparse.core.encoding import encode_base64

HELLO_CRLF = (
    "From: a@x.com\r\n"
    "To: b@x.com\r\n"
    "Subject: Hi\r\n"
    'Content-Type: multipart/mixed; boundary="XYZ"\r\n'
    "\r\n"
    "--XYZ\r\n"
    "Content-Type: text/plain\r\n"
    "\r\n"
    "Hello\r\n"
    "--XYZ\r\n"
    "Content-Type: text/plain; name=\"a.txt\"\r\n"
    'Content-Disposition: attachment; filename="a.txt"\r\n'
    "Content-Transfer-Encoding: base64\r\n"
    "\r\n"
    "SGk=\r\n"
    "--XYZ--\r\n"
)


def test_multipart_with_attachment_end_to_end(diagnostics):
    """
    What:
        The canonical two-part message yields its text and one attachment.

    How:
        Parse the CRLF message and compare every field of the record.
    """
    email = parse_message(HELLO_CRLF, logger=diagnostics)
    assert email.from_ == "a@x.com"
    assert email.to == "b@x.com"
    assert email.cc == ""
    assert email.subject == "Hi"
    assert email.text == "Hello"
    assert email.html == ""
    assert len(email.attachments) == 1
    attachment = email.attachments[0]
    assert attachment.name == "a.txt"
    assert attachment.data == encode_base64(b"Hi")
    assert attachment.content_type == "text/plain"
    assert attachment.size == 4


def test_bytes_input_matches_text_input():
    assert parse_message(HELLO_CRLF.encode("ascii")) == parse_message(HELLO_CRLF)


def test_encoded_subject():
    email = parse_message("Subject: =?UTF-8?B?SGVsbG8=?=\n\nbody")
    assert email.subject == "Hello"
    assert email.text == "body"


def test_single_part_quoted_printable():
    raw = "From: a@x.com\nContent-Transfer-Encoding: quoted-printable\n\nCaf=E9"
    assert parse_message(raw).text == "Café"


def test_single_part_html_base64():
    raw = "Content-Type: text/html; charset=utf-8\r\nContent-Transfer-Encoding: base64\r\n\r\nPHA+Qm9uam91cjwvcD4=\r\n"
    email = parse_message(raw)
    assert email.html == "<p>Bonjour</p>"
    assert email.text == ""


def test_defaults_for_missing_headers():
    email = parse_message("\nonly a body")
    assert email.from_ == "Unknown"
    assert email.subject == "No Subject"
    assert (email.to, email.cc, email.date, email.html) == ("", "", "", "")
    assert email.text == "only a body"
    assert email.attachments == ()


def test_defaults_follow_config():
    config = ParserConfig(default_from="(nobody)", default_subject="(none)")
    email = parse_message("X-Other: 1\n\n", config=config)
    assert email.from_ == "(nobody)"
    assert email.subject == "(none)"


def test_headers_only_message_has_empty_body():
    email = parse_message("From: a@x.com\nSubject: s")
    assert email.subject == "s"
    assert email.text == ""


def test_multipart_without_boundary_is_single_part():
    email = parse_message("Content-Type: multipart/mixed\n\nraw body")
    assert email.text == "raw body"


def test_last_body_of_each_kind_wins():
    raw = (
        "Content-Type: multipart/mixed; boundary=b\n\n"
        "--b\nContent-Type: text/plain\n\nfirst\n"
        "--b\nContent-Type: text/html\n\n<p>one</p>\n"
        "--b\nContent-Type: text/plain\n\nsecond\n"
        "--b--\n"
    )
    email = parse_message(raw)
    assert email.text == "second"
    assert email.html == "<p>one</p>"


def test_nested_sample_message(data_dir):
    """
    What:
        A ``multipart/mixed`` holding a ``multipart/alternative`` is fully
        decoded.

    Why:
        Nested alternatives are the most common layout of real mail; a
        single-level splitter would lose both bodies.

    How:
        Parse ``nested_report.eml`` and check bodies, decoded headers,
        attachments and the recorded part tree.
    """
    email = parse_message((data_dir / "nested_report.eml").read_bytes())
    assert email.from_ == '"Alice Example" <alice@example.com>'
    assert email.to == "bob@example.com, carol@example.com"
    assert email.cc == "Dénis <denis@example.com>"
    assert email.subject == "Quarterly réport"
    assert email.date == "Mon, 5 Feb 2024 10:00:00 +0000"
    assert email.text == "Café au lait"
    assert email.html == "<p>Bonjour</p>"
    assert [(a.name, a.content_type, a.data) for a in email.attachments] == [
        ("report.pdf", "application/pdf", "SGVsbG8gZnJvbSBhIFBERg=="),
        ("résumé.txt", "text/plain", "YT1i"),
    ]
    tree = [(p.index, p.parent, p.depth, p.content_type, p.kind) for p in email.parts]
    assert tree == [
        (0, None, 0, "multipart/mixed", "multipart"),
        (1, 0, 1, "multipart/alternative", "multipart"),
        (2, 1, 2, "text/plain", "text"),
        (3, 1, 2, "text/html", "html"),
        (4, 0, 1, "application/pdf", "attachment"),
        (5, 0, 1, "text/plain", "attachment"),
        (6, 0, 1, "application/octet-stream", "discarded"),
    ]


def test_depth_limit_truncates_nested_multipart(data_dir, diagnostics):
    config = ParserConfig(max_depth=1)
    email = parse_message((data_dir / "nested_report.eml").read_text(), config=config, logger=diagnostics)
    assert email.text == ""
    assert email.html == ""
    assert len(email.attachments) == 2
    assert email.parts[1].kind == "truncated"
    assert "multipart_depth_exceeded" in diagnostics.messages()


def test_deeply_nested_input_is_bounded():
    depth = 40
    raw = "Content-Type: multipart/mixed; boundary=b0\n\n"
    for level in range(1, depth):
        raw += f"--b{level - 1}\nContent-Type: multipart/mixed; boundary=b{level}\n\n"
    raw += f"--b{depth - 1}\nContent-Type: text/plain\n\ndeep\n"
    email = parse_message(raw, config=ParserConfig(max_depth=8))
    assert email.text == ""
    assert email.parts[-1].kind == "truncated"
    assert max(part.depth for part in email.parts) == 8


def test_header_keys_case_insensitive_end_to_end():
    email = parse_message("FROM: a@x.com\nSUBJECT: A\nCONTENT-TYPE: TEXT/HTML\n\n<b>x</b>")
    assert email.from_ == "a@x.com"
    assert email.subject == "A"
    assert email.html == "<b>x</b>"


def test_headers_are_exposed():
    email = parse_message("Message-ID: <1@x>\nSubject: s\n\n")
    assert email.headers["message-id"] == "<1@x>"
    assert email.headers["Message-Id"] == "<1@x>"


def test_to_dict_record_shape():
    record = parse_message(HELLO_CRLF).to_dict()
    assert set(record) == {"from", "to", "cc", "subject", "date", "text", "html", "attachments"}
    assert record["attachments"] == [
        {"name": "a.txt", "contentType": "text/plain", "data": "SGk=", "size": 4}
    ]


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        b"",
        "\x00\x01\x02",
        b"\xff\xfe\xfd binary junk",
        "Content-Type: multipart/mixed; boundary=\"((\"\n\n--((\nContent-Transfer-Encoding: base64\n\n!!!\n--((--",
        "Content-Type: multipart/mixed; boundary=b\n\n--b\n--b\n--b--",
        "Subject: =?UTF-8?B?@@@?=\n\n",
        "Content-Transfer-Encoding: base64\n\n%%%",
    ],
)
def test_malformed_input_never_raises(raw, diagnostics):
    email = parse_message(raw, logger=diagnostics)
    assert isinstance(email.subject, str)
    assert isinstance(email.attachments, tuple)


def test_failing_part_is_skipped(monkeypatch, diagnostics):
    """
    What:
        One broken part must not abort the message.

    How:
        Make ``decode_part`` raise for HTML parts only and check the text body
        and the ``failed`` record.
    """
    from emlparse.core import parser as parser_module

    original = parser_module.decode_part

    def flaky(part, **kwargs):
        if "html" in part.content_type:
            raise RuntimeError("boom")
        return original(part, **kwargs)

    monkeypatch.setattr(parser_module, "decode_part", flaky)
    raw = (
        "Content-Type: multipart/alternative; boundary=b\n\n"
        "--b\nContent-Type: text/html\n\n<p>x</p>\n"
        "--b\nContent-Type: text/plain\n\nplain\n"
        "--b--\n"
    )
    email = parse_message(raw, logger=diagnostics)
    assert email.text == "plain"
    assert email.html == ""
    assert [part.kind for part in email.parts] == ["multipart", "failed", "text"]
    assert "part_failed" in diagnostics.messages()


def test_parallel_parses_are_independent(data_dir):
    nested = (data_dir / "nested_report.eml").read_text()
    inputs = [HELLO_CRLF, nested] * 20
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(parse_message, inputs))
    assert {result.text for result in results} == {"Hello", "Café au lait"}
    assert all(result == parse_message(raw) for result, raw in zip(results, inputs))


@pytest.fixture
def stdlib_logger(caplog):
    """Return a standard library logger whose records ``caplog`` collects."""

    caplog.set_level(logging.DEBUG, logger="emlparse.tests.stdlib")
    return logging.getLogger("emlparse.tests.stdlib")


def test_stdlib_logger_receives_base64_failure(stdlib_logger, caplog):
    """
    What:
        A :class:`logging.Logger` passed as ``logger`` receives diagnostics.

    Why:
        Callers embedding the parser route diagnostics into their own logging
        tree; structured fields must not break the standard library API.

    How:
        Parse a body with an undecodable base64 payload and inspect the
        captured records.
    """
    email = parse_message("Content-Transfer-Encoding: base64\n\n%%%", logger=stdlib_logger)
    assert email.text == "%%%"
    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert any(record.getMessage().startswith("base64_decode_failed ") for record in warnings)


def test_stdlib_logger_receives_encoded_word_failure(stdlib_logger, caplog):
    email = parse_message("Subject: =?UTF-8?B?A?=\n\nbody", logger=stdlib_logger)
    assert email.subject == "=?UTF-8?B?A?="
    assert "encoded_word_decode_failed" in caplog.text


def test_stdlib_logger_receives_failed_part(monkeypatch, stdlib_logger, caplog):
    from emlparse.core import parser as parser_module

    def broken(part, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(parser_module, "decode_part", broken)
    raw = "Content-Type: multipart/mixed; boundary=b\n\n--b\nContent-Type: text/plain\n\nx\n--b--\n"
    email = parse_message(raw, logger=stdlib_logger)
    assert [part.kind for part in email.parts] == ["multipart", "failed"]
    assert "part_failed" in caplog.text


class _RaisingSink:
    """Diagnostic sink whose every method fails."""

    def _fail(self, message, **fields):
        raise RuntimeError("sink unavailable")

    debug = info = warning = error = _fail


def test_failing_sink_does_not_escape(capsys):
    email = parse_message(HELLO_CRLF, logger=_RaisingSink())
    assert email.from_ == "Unknown"
    assert email.subject == "No Subject"
    assert "diagnostic_sink_failed" in capsys.readouterr().err
