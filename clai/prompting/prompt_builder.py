"""Prompt and response-schema assembly for summarization calls.

This module only builds prompt strings and JSON-schema fragments. Acquisition,
usefulness filtering, token budgeting, and model invocation happen elsewhere.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of prompt components per prompt variant.
    - No I/O and no global state mutation.

Prompt safety model:
    Acquired web text is interpolated as raw text. The summarization prompt
    tells the model to cite, not narrate, the content; it does not sanitize it.
"""

from typing import Iterable

from clai.retrieval.web.models import AcquiredContent


# =========================================================
# RESPONSE SCHEMAS
# =========================================================
# Both prompt variants return `{textual, links[]}`; only the descriptions
# differ so the model knows whether links come from the page or from its own
# recommendations.

def _links_schema(name_description: str, url_description: str) -> dict:
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": name_description},
                "url": {"type": "string", "description": url_description},
            },
            "required": ["name", "url"],
        },
    }


WEB_PAGE_SCHEMA = {
    "textual": {
        "type": "string",
        "description": "Concise summary of the text",
    },
    "links": _links_schema("Descriptive name or title of the link", "The URL of the link"),
}

QUERY_SCHEMA = {
    "textual": {
        "type": "string",
        "description": "Comprehensive answer to the user query",
    },
    "links": _links_schema(
        "Descriptive name of the recommended resource",
        "URL to the recommended resource",
    ),
}


# =========================================================
# COMBINED SOURCE CONTENT
# =========================================================
# Each useful record becomes one attributed block; blocks are separated by a
# blank line and keep the order they were given in.

def combine_sources(items: Iterable[AcquiredContent]) -> str:
    """Join acquired records into one attributed content block."""
    return "\n\n".join(f"Content from {item.url}:\n{item.content}" for item in items)


# =========================================================
# WEB PAGE SUMMARY PROMPT
# =========================================================
# Prompt component order:
#   1) Role and guidelines
#   2) Citation instruction
#   3) Quoted content

def build_web_page_prompt(content: str) -> str:
    """Build the summarization prompt for acquired web content.

    Args:
        content: Combined source text, already trimmed to the token budget.

    Returns:
        Prompt string ending with the quoted content.
    """
    return (
        "You are an expert educator. Analyze the following text and create a\n"
        "concise summary with the following guidelines:\n"
        " 1. Always use bullet points, lists and tables over paragraphs.\n"
        " 2. Produce valid markdown output\n"
        " 3. Use the articles titles and headings as a guide\n"
        " 4. Try to present the most relevant information\n"
        " 5. Extract all meaningful links from the text\n"
        " 6. Don't narrate the content e.g. 'The text says that the earth is round' "
        "but rather use the content itself e.g. 'The earth is round'\n"
        " 7. Don't use the word 'text' or 'content' in your summary\n"
        " 8. Don't try to emulate emotions or tone of the original content, "
        "always be neutral and objective\n"
        " 9. If the content is instructional repeat the instructions step by step e.g.:\n"
        "  - Step 1: Do this\n"
        "  - Step 2: Do that\n"
        "  - Step 3: Done\n"
        " 10. Mark proper nouns as bold e.g. **Harry Potter**\n"
        " 11. Mark headings (h1, h2, h3) as #, ##, ### respectively\n\n"
        "Don't just summarize, cite the key information.\n\n"
        f'Text to analyze:\n"{content}\n"'
    )


# =========================================================
# DIRECT QUERY PROMPT
# =========================================================
# Used when crawling is disabled or no acquired content was useful.
# Prompt component order:
#   1) Role
#   2) Quoted query
#   3) Guidelines

def build_query_prompt(query: str) -> str:
    """Build the knowledge-only answer prompt for a raw user query."""
    return (
        "You are an expert educator and researcher. Answer the following query "
        "with accurate, helpful information:\n\n"
        f'"{query.strip()}"\n\n'
        "Guidelines:\n"
        "1. Provide a comprehensive but concise answer\n"
        "2. Use bullet points, lists, and tables when appropriate\n"
        "3. Include relevant examples or step-by-step instructions if applicable\n"
        "4. Format your response in valid markdown\n"
        "5. Be factual and cite general knowledge sources when relevant\n"
        "6. If you suggest external resources, format them as links in the response\n"
        "7. Mark proper nouns as bold e.g. **OpenAI**\n"
        "8. Use appropriate headings (##, ###) to structure your response\n"
        "9. If the query is about current events beyond your knowledge cutoff, "
        "mention that limitation\n\n"
        "Provide a thorough, educational response that directly addresses the user's query."
    )
