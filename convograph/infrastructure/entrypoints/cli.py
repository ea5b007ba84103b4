"""
Interactive terminal chat: the Composition Root for local use.

Reads a line, hands it to a ChatSession, and renders the reply with rich.
A missing model credential is fatal here (exit status 1); the graph itself
never looks at credentials.

Run:
    convograph            # console script
    python -m convograph.infrastructure.entrypoints.cli
"""

import asyncio

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from convograph.application.graph.errors import (
    GraphError,
    GraphRecursionError,
    RunCancelledError,
)
from convograph.application.use_cases.chat_session import (
    HELP_ENTRIES,
    ChatSession,
    ReplyKind,
    SessionReply,
)
from convograph.application.use_cases.run_conversation_turn import RunConversationTurnUseCase
from convograph.domain.entities.conversation_state import Sentiment
from convograph.infrastructure.config.logging_config import configure_logging
from convograph.infrastructure.config.settings import ConfigurationError
from convograph.infrastructure.entrypoints.bootstrap import build_graph, load_settings
from convograph.infrastructure.observability.langfuse_adapter import (
    create_observability_handler,
)

SENTIMENT_STYLES = {
    Sentiment.POSITIVE: "green",
    Sentiment.NEUTRAL: "yellow",
    Sentiment.NEGATIVE: "red",
}

USER_PROMPT = "[bold green]You:[/] "


def failure_notice(error: GraphError | None) -> str:
    """Fixed, user-facing wording for an aborted turn; the details go to the log."""
    if isinstance(error, GraphRecursionError):
        return "graph did not terminate"
    if isinstance(error, RunCancelledError):
        return "turn cancelled"
    return "turn failed"


def print_header(console: Console) -> None:
    console.print(
        Panel.fit(
            "[bold cyan]🚀 CONVOGRAPH CHATBOT[/]\n"
            "[dim]Router, calculator, chat, sentiment, calming and summaries[/]\n"
            "[magenta]Commands: 'exit' to quit, 'clear' to reset, 'help' for info, "
            "'stats' for counts[/]",
            border_style="dim",
        )
    )


def render_help(console: Console) -> None:
    table = Table(title="📋 Available Commands", show_header=False, box=None)
    for command, description in HELP_ENTRIES:
        table.add_row(f"[bold]{command}[/]", f"[dim]{description}[/]")
    console.print(table)


def render_reply(console: Console, reply: SessionReply) -> None:
    if reply.kind is ReplyKind.HELP:
        render_help(console)
    elif reply.kind is ReplyKind.STATS:
        stats = reply.stats
        console.print("[bold magenta]📈 Conversation Statistics:[/]")
        console.print(f"[dim]  • Total messages: {stats.total_messages}[/]")
        console.print(f"[dim]  • User messages: {stats.user_messages}[/]")
        console.print(f"[dim]  • AI responses: {stats.assistant_messages}[/]")
        console.print(f"[dim]  • Summaries created: {stats.summaries}[/]")
    elif reply.kind is ReplyKind.RESET:
        console.clear()
        print_header(console)
        console.print("[bold green]🧹 Conversation cleared![/]")
    elif reply.kind is ReplyKind.FAILED:
        console.print(
            f"[bold red]⚠️  This turn could not be completed:[/] {failure_notice(reply.error)}\n"
            "[dim]The conversation was left as it was before this message.[/]"
        )
    elif reply.kind is ReplyKind.TURN:
        console.print(f"\n[bold blue]🤖 AI:[/] {escape(reply.text) if reply.text else '[dim](no reply)[/]'}")
        state = reply.state
        style = SENTIMENT_STYLES[state.sentiment]
        console.print(f"[dim]📊 Sentiment:[/] [{style}]{state.sentiment.value.upper()}[/]")
        if state.calming_response:
            console.print(f"[bold yellow]💚 Calming Response:[/] {escape(state.calming_response)}")
        if state.summaries:
            console.print(f"[bold magenta]📝 Summaries: {len(state.summaries)} total[/]")
        console.print()


async def run_repl(session: ChatSession, console: Console) -> None:
    print_header(console)
    console.print("[dim]💡 Tip: Try a math expression like '12*4+6' or just chat![/]\n")
    while True:
        try:
            line = await asyncio.to_thread(console.input, USER_PROMPT)
        except EOFError:
            break
        reply = await session.handle(line)
        if reply.kind is ReplyKind.EXIT:
            console.print("[bold green]\n👋 Thanks for chatting! Goodbye![/]")
            break
        render_reply(console, reply)


def main() -> None:
    console = Console()
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        settings.require_credentials()
    except ConfigurationError as exc:
        console.print(f"[bold red]❌ {exc}[/]")
        raise SystemExit(1) from exc

    observability = create_observability_handler(settings)
    graph = build_graph(settings, observability)
    session = ChatSession(RunConversationTurnUseCase(graph))
    try:
        asyncio.run(run_repl(session, console))
    except KeyboardInterrupt:
        console.print("\n[bold green]👋 Goodbye![/]")
    finally:
        if observability is not None:
            observability.flush()


if __name__ == "__main__":
    main()
