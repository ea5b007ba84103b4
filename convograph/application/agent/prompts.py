"""
Prompts and canned replies used by the conversation graph nodes.
Kept in the application layer, next to the nodes that use them, and free of
any provider-specific formatting.
"""

CHAT_SYSTEM_PROMPT = "You are a helpful, friendly assistant. Be concise but informative."

DOMAIN_CHAT_SYSTEM_PROMPT = (
    "You are a helpful assistant that ONLY answers questions about {domain}. "
    "Stay strictly on topic."
)

SENTIMENT_SYSTEM_PROMPT = (
    "Analyze the sentiment of this message. "
    "Respond with only: positive, neutral, or negative"
)

CALMING_SYSTEM_PROMPT = (
    "The user seems upset. Provide a brief, empathetic, and calming response."
)

SUMMARY_SYSTEM_PROMPT = "Create a brief summary of the key points from this conversation:"

DOMAIN_CHECK_SYSTEM_PROMPT = (
    "Answer strictly with 'yes' or 'no'. Is the following query about {domain}?"
)

# Replies produced without a model call.
CHAT_ERROR_REPLY = "Sorry, I encountered an error. Please try again."
CALMING_FALLBACK_REPLY = (
    "I'm sorry you're having a hard time. Take a slow breath; "
    "I'm here to help however I can."
)
CALCULATION_RESULT_TEMPLATE = "📊 **Calculation Result:** {expression} = **{result}**"
CALCULATION_ERROR_REPLY = (
    "Sorry, I couldn't calculate that expression. Please check your syntax."
)
OFF_DOMAIN_REPLY = "❌ I only respond to {domain}-related questions."
