import contextlib

from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from statement_ledger.term_ui import prompt_party_name

KNOWN = ["Sri Raja Rajeswari Hospital", "Acme Traders", "Sunrise Pharma"]


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def test_enter_accepts_prefilled_suggestion():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r")
        result = prompt_party_name(KNOWN, default="Acme Traders", session=sess)
        assert result == "Acme Traders"


def test_typed_name_replaces_suggestion():
    with pipe_session() as (pipe, sess):
        # Ctrl-A (home), Ctrl-K (kill to end), type a new name, Enter
        pipe.send_text("\x01\x0bNew Party Pvt Ltd  \r")
        result = prompt_party_name(KNOWN, default="Acme Traders", session=sess)
        assert result == "New Party Pvt Ltd"


def test_cleared_input_skips_row():
    with pipe_session() as (pipe, sess):
        pipe.send_text("\x01\x0b\r")
        result = prompt_party_name(KNOWN, default="Acme Traders", session=sess)
        assert result == ""


def test_tab_completes_known_prefix():
    with pipe_session() as (pipe, sess):
        pipe.send_text("sun\t\r")
        result = prompt_party_name(KNOWN, session=sess)
        assert result == "sunrise Pharma"


def test_name_without_letters_is_rejected_until_fixed():
    with pipe_session() as (pipe, sess):
        pipe.send_text("12345\r")
        pipe.send_text("\x01\x0bAcme Traders\r")
        result = prompt_party_name(KNOWN, session=sess)
        assert result == "Acme Traders"
