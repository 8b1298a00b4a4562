"""Prompt templates for lease analysis and housing-search answers."""

from __future__ import annotations

from typing import Any, Dict, List

CHUNK_SEPARATOR = "\n\n---\n\n"


def chunk_analysis_prompt(chunk: str, chunk_index: int) -> str:
    """Prompt for one chunk; ``chunk_index`` is 0-based and rendered 1-based."""
    return f"""Analyze this part of a rental agreement contract (Part {chunk_index + 1}):

{chunk}

Please provide:
1. Key terms and conditions in this section
2. Important obligations or rights mentioned
3. Any potential issues or concerns

Format your response in bullet points."""


def summary_prompt(combined_analyses: str) -> str:
    return f"""Based on the following analyses of a rental agreement contract, provide a comprehensive summary:

{combined_analyses}

Please provide:
1. Overall contract type and purpose
2. Key terms and conditions
3. Important obligations for both parties
4. Payment and deposit requirements
5. Duration and termination clauses"""


def issues_prompt(combined_analyses: str) -> str:
    return f"""Based on the following rental agreement analysis, identify potential problems and issues:

{combined_analyses}

Please identify:
1. Unfair or one-sided clauses
2. Vague or ambiguous terms
3. Missing important protections
4. Potential legal compliance issues
5. Recommendations for improvement

Focus on issues that could cause problems for either party."""


def _format_search_results(results: List[Dict[str, Any]]) -> str:
    lines = []
    for idx, result in enumerate(results, start=1):
        title = result.get("title") or "No title"
        content = result.get("content") or result.get("snippet") or "No content"
        url = result.get("url") or "No URL"
        lines.append(f"{idx}. {title}\n   Content: {content}\n   Source: {url}")
    return "\n\n".join(lines)


def housing_answer_prompt(query: str, results: List[Dict[str, Any]]) -> str:
    """Ask the model to answer a housing question from search results."""
    return f"""You are a housing and real estate expert. Based on the following search results, please provide a comprehensive analysis and answer to the user's housing-related question: "{query}"

Search Results:
{_format_search_results(results)}

Please provide a detailed response that includes:

1. **Direct Answer**: A clear, concise answer to the user's question based on the search results

2. **Key Information Summary**:
   - Important details about properties, locations, or housing options
   - Relevant prices, availability, and conditions
   - Notable features or amenities mentioned

3. **Market Insights**:
   - Any market trends or patterns identified
   - Comparative information if multiple options are available
   - Location-specific details and advantages

4. **Practical Recommendations**:
   - Suggestions based on the search results
   - What to consider when making housing decisions
   - Any red flags or positive indicators mentioned

Format your response in a clear, structured manner with bullet points where appropriate.

If the search results don't contain enough information to fully answer the question, acknowledge this and suggest what additional information might be needed."""
