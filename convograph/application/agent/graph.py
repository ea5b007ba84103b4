"""
Conversation graph factory.

Dependency-injection contract:
  - Receives an ILanguageModel; never imports a provider SDK.
  - Every tunable (summary threshold and window, domain guard, step limit,
    node timeout) is a parameter, so callers decide configuration.

Topology::

    router --arithmetic--> calculator --> END
       \\--otherwise--> [domain_check --allowed-->] chatbot --> sentiment
    sentiment --negative--> calming --> summarize --> END
       \\--otherwise-------------------> summarize
"""

from typing import Optional

from convograph.application.agent.nodes.calculator_node import CalculatorNode
from convograph.application.agent.nodes.calming_node import CalmingNode
from convograph.application.agent.nodes.chat_node import ChatNode
from convograph.application.agent.nodes.domain_check_node import DomainCheckNode
from convograph.application.agent.nodes.router_node import RouterNode
from convograph.application.agent.nodes.sentiment_node import SentimentNode
from convograph.application.agent.nodes.summarize_node import (
    DEFAULT_SUMMARY_THRESHOLD,
    DEFAULT_SUMMARY_WINDOW,
    SummarizeNode,
)
from convograph.application.agent.routing import (
    is_domain_allowed,
    is_negative,
    routes_to_calculator,
)
from convograph.application.graph.builder import DEFAULT_MAX_STEPS, GraphBuilder
from convograph.application.graph.edges import END, START
from convograph.application.graph.executor import CompiledGraph
from convograph.domain.ports.llm_port import ILanguageModel


def build_conversation_graph(
    llm: ILanguageModel,
    *,
    summary_threshold: int = DEFAULT_SUMMARY_THRESHOLD,
    summary_window: int = DEFAULT_SUMMARY_WINDOW,
    allowed_domain: Optional[str] = None,
    max_steps: int = DEFAULT_MAX_STEPS,
    node_timeout: Optional[float] = None,
) -> CompiledGraph:
    """Build and compile the conversation graph.

    Args:
        llm:               ILanguageModel implementation, shared by every model-backed node.
        summary_threshold: Summarize once the conversation holds more messages than this.
        summary_window:    Number of trailing messages a summary covers (0 = all).
        allowed_domain:    When set, chat turns about any other topic are refused.
        max_steps:         Node invocations allowed per run before the run is aborted.
        node_timeout:      Seconds each node may take before its fallback is used.

    Returns:
        CompiledGraph ready for ainvoke() / astream() calls.
    """
    builder = GraphBuilder()
    builder.add_node(RouterNode.NAME, RouterNode())
    builder.add_node(CalculatorNode.NAME, CalculatorNode())
    builder.add_node(ChatNode.NAME, ChatNode(llm, domain=allowed_domain))
    builder.add_node(SentimentNode.NAME, SentimentNode(llm))
    builder.add_node(CalmingNode.NAME, CalmingNode(llm))
    builder.add_node(
        SummarizeNode.NAME,
        SummarizeNode(llm, threshold=summary_threshold, window=summary_window),
    )

    chat_entry = ChatNode.NAME
    if allowed_domain:
        builder.add_node(DomainCheckNode.NAME, DomainCheckNode(llm, allowed_domain))
        builder.add_conditional_edges(
            DomainCheckNode.NAME,
            [(is_domain_allowed, ChatNode.NAME)],
            default=END,
        )
        chat_entry = DomainCheckNode.NAME

    builder.add_edge(START, RouterNode.NAME)
    builder.add_conditional_edges(
        RouterNode.NAME,
        [(routes_to_calculator, CalculatorNode.NAME)],
        default=chat_entry,
    )
    builder.add_edge(CalculatorNode.NAME, END)
    builder.add_edge(ChatNode.NAME, SentimentNode.NAME)
    builder.add_conditional_edges(
        SentimentNode.NAME,
        [(is_negative, CalmingNode.NAME)],
        default=SummarizeNode.NAME,
    )
    builder.add_edge(CalmingNode.NAME, SummarizeNode.NAME)
    builder.add_edge(SummarizeNode.NAME, END)

    return builder.compile(max_steps=max_steps, node_timeout=node_timeout)
