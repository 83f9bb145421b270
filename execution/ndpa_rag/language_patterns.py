"""
Pattern and Prompt Definitions for the NDPA Agent

All regex patterns, prompt templates, and fixed response strings.
Modules import from here instead of defining patterns inline.
"""

import re

# =============================================================================
# Citation Patterns (questions like "What does Part II Section 5 say?")
# =============================================================================

PART_REFERENCE_REGEX = re.compile(r"part\s*([ivx\d]+)", re.IGNORECASE)
SECTION_REFERENCE_REGEX = re.compile(r"section\s*(\d+)", re.IGNORECASE)

# =============================================================================
# Structuring Patterns (raw NDPA text -> parts and sections)
# =============================================================================

PART_SPLIT_REGEX = re.compile(r"(?=PART\s+[IVX]+)")
PART_TITLE_REGEX = re.compile(r"(PART\s+[IVX]+[^\n]*)")

# "12. - (1) A data controller shall ..." ; the body runs up to the next "<n>. -"
SECTION_BODY_REGEX = re.compile(
    r"(\d+)\.\s*[–—-]\s*\(?(\d*)\)?([\s\S]*?)(?=(?:\r?\n)?\d+\.\s*[–—-]|\Z)"
)

UNKNOWN_PART_TITLE = "UNKNOWN PART"

# =============================================================================
# Fixed Response Strings
# =============================================================================

NOT_APPLICABLE = "N/A"

NO_MATCH_SUMMARY = (
    "No specific section found, but here's what the NDPA generally says "
    "about data protection."
)

SUMMARY_LIMIT = 500
SUMMARY_ELLIPSIS = "..."

EXPLANATION_FALLBACKS = {
    "timeout": "I found the relevant NDPA section but the explanation timed out. See the section summary above.",
    "error": "I found the relevant NDPA section but couldn't generate an explanation. See the section summary above.",
}

UNKNOWN_METHOD_MESSAGE = "Unknown method. Use 'message/send' or 'help'."

# =============================================================================
# LLM Prompt Templates
# =============================================================================

AGENT_INSTRUCTIONS = """
You are an expert assistant specialized in the Nigeria Data Protection Act (NDPA) 2023.

Your goal is to help users understand their data protection rights and obligations under the NDPA. When responding:

- Always aim to cite the relevant Part and Section of the NDPA if possible.
- Use the "search-ndpa" tool to find the most applicable section.
- Summarize in plain English what the section means and how it applies.
- If no exact section is found, give a general but accurate explanation.
- Keep responses factual, concise, and legally neutral (no personal opinions).
- If the question involves privacy, consent, data breaches, or rights, clarify what the NDPA says about it.
- If the user writes in a Nigerian local language or Pidgin, understand it and reply in clear English.
"""

EXPLAIN_PROMPT = """
User asked about a specific part of the Nigeria Data Protection Act.

Part: {part}
Section: {section_number}

Summary:
{summary}

Explain in clear, simple English what this section means and how it applies to individuals or companies.
"""

RELEVANCE_JUDGE_INSTRUCTIONS = (
    "You are an expert on Nigeria's Data Protection Act 2023. "
    "Given a user's question and the assistant's cited section, determine if the section truly addresses the question. "
    "Score based on factual alignment, relevance, and clarity. "
    "Return only JSON in the specified schema. "
    "Never guess NDPA content if the search-ndpa tool returns a section. Always rely on its output."
)

RELEVANCE_JUDGE_PROMPT = """
You are assessing if a legal assistant correctly referenced the Nigeria Data Protection Act (NDPA) 2023.
User Question:
\"\"\"
{user_text}
\"\"\"
Assistant Response:
\"\"\"
{assistant_text}
\"\"\"

Tasks:
1. Determine if the NDPA section cited directly answers or applies to the user's question.
2. If yes, set "relevant" = true. Otherwise, false.
3. Assign a confidence score (0-1) based on how closely it aligns.
Return JSON like:
{{
  "relevant": boolean,
  "confidence": number,
  "explanation": string
}}
"""

# =============================================================================
# Completeness Scoring
# =============================================================================

# Words ignored when comparing question terms against an answer
STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "can", "do", "does",
    "for", "from", "how", "i", "if", "in", "is", "it", "my", "of", "on",
    "or", "say", "says", "should", "that", "the", "this", "to", "under",
    "was", "what", "when", "where", "which", "who", "why", "with", "you",
})

TERM_REGEX = re.compile(r"[a-z0-9]+")
