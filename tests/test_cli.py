import io

import pytest
from rich.console import Console

from convograph.application.agent.graph import build_conversation_graph
from convograph.application.agent.prompts import SENTIMENT_SYSTEM_PROMPT
from convograph.application.graph.builder import GraphBuilder
from convograph.application.graph.edges import START
from convograph.application.graph.errors import (
    GraphRecursionError,
    NodeExecutionError,
    RunCancelledError,
)
from convograph.application.use_cases.chat_session import (
    HELP_ENTRIES,
    ChatSession,
    ReplyKind,
    SessionReply,
)
from convograph.application.use_cases.run_conversation_turn import RunConversationTurnUseCase
from convograph.domain.entities.conversation_state import ConversationState, Sentiment
from convograph.domain.entities.message import Message
from convograph.infrastructure.entrypoints.cli import failure_notice, render_reply, run_repl

BRACKETED_REPLY = "See [docs](http://x) and stop at [/INST] or [bold]here[/bold]."


def make_console():
    return Console(file=io.StringIO(), force_terminal=False, width=200)


def output(console):
    return console.file.getvalue()


def scripted_input(console, lines):
    pending = list(lines)

    def fake_input(prompt=""):
        if not pending:
            raise EOFError
        return pending.pop(0)

    console.input = fake_input


def session_for(llm):
    return ChatSession(RunConversationTurnUseCase(build_conversation_graph(llm)))


# ---------- render_reply ----------

def test_reply_with_brackets_is_printed_literally():
    console = make_console()
    state = ConversationState(messages=(Message.user("hi"), Message.assistant(BRACKETED_REPLY)))
    render_reply(console, SessionReply(ReplyKind.TURN, state, text=BRACKETED_REPLY))
    assert BRACKETED_REPLY in output(console)


def test_calming_response_with_brackets_is_printed_literally():
    console = make_console()
    state = ConversationState(
        messages=(Message.user("awful"), Message.assistant("sorry")),
        sentiment=Sentiment.NEGATIVE,
        calming_response="Breathe [slowly] [/]",
    )
    render_reply(console, SessionReply(ReplyKind.TURN, state, text="sorry"))
    text = output(console)
    assert "Breathe [slowly] [/]" in text
    assert "NEGATIVE" in text


def test_turn_without_reply_text_says_so():
    console = make_console()
    render_reply(console, SessionReply(ReplyKind.TURN, ConversationState.empty(), text=None))
    assert "(no reply)" in output(console)


@pytest.mark.parametrize(
    "error, notice",
    [
        (GraphRecursionError(None, 10, "spin"), "graph did not terminate"),
        (RunCancelledError(None, "chatbot"), "turn cancelled"),
        (NodeExecutionError("chatbot", None, KeyError("secret_column")), "turn failed"),
    ],
)
def test_failed_turn_shows_a_fixed_notice(error, notice):
    console = make_console()
    render_reply(console, SessionReply(ReplyKind.FAILED, ConversationState.empty(), error=error))
    text = output(console)
    assert failure_notice(error) == notice
    assert notice in text
    assert "left as it was" in text
    assert "secret_column" not in text
    assert "KeyError" not in text


def test_stats_and_help_are_rendered():
    console = make_console()
    state = ConversationState(messages=(Message.user("a"), Message.assistant("b")))
    render_reply(console, SessionReply(ReplyKind.STATS, state, stats=state.stats()))
    render_reply(console, SessionReply(ReplyKind.HELP, state))
    text = output(console)
    assert "Total messages: 2" in text
    assert "AI responses: 1" in text
    for command, _ in HELP_ENTRIES:
        assert command in text


def test_reset_reprints_the_header():
    console = make_console()
    render_reply(console, SessionReply(ReplyKind.RESET, ConversationState.empty()))
    text = output(console)
    assert "CONVOGRAPH CHATBOT" in text
    assert "Conversation cleared!" in text


# ---------- run_repl ----------

@pytest.mark.anyio
async def test_repl_runs_scripted_turns_until_exit(fake_llm_factory):
    llm = fake_llm_factory({SENTIMENT_SYSTEM_PROMPT: "neutral"}, default=BRACKETED_REPLY)
    session = session_for(llm)
    console = make_console()
    scripted_input(console, ["2+2", "  ", "hello", "stats", "exit", "never read"])

    await run_repl(session, console)

    text = output(console)
    assert "Calculation Result:** 2+2 = **4**" in text
    assert BRACKETED_REPLY in text
    assert "Total messages: 4" in text
    assert "Goodbye" in text
    assert len(session.state.messages) == 4


@pytest.mark.anyio
async def test_repl_stops_at_end_of_input(fake_llm_factory):
    session = session_for(fake_llm_factory())
    console = make_console()
    scripted_input(console, ["3*3"])

    await run_repl(session, console)

    text = output(console)
    assert "= **9**" in text
    assert "Goodbye" not in text


@pytest.mark.anyio
async def test_repl_survives_a_failed_turn():
    async def spin(state):
        return {}

    graph = (
        GraphBuilder()
        .add_node("spin", spin)
        .add_edge(START, "spin")
        .add_conditional_edges("spin", [(lambda s: False, "spin")], default="spin")
        .compile(max_steps=2)
    )
    session = ChatSession(RunConversationTurnUseCase(graph))
    console = make_console()
    scripted_input(console, ["hi", "quit"])

    await run_repl(session, console)

    text = output(console)
    assert "graph did not terminate" in text
    assert "step limit" not in text
    assert "Goodbye" in text
    assert session.state == ConversationState.empty()
