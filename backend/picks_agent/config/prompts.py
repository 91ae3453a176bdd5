from __future__ import annotations

GRADE_PROMPT = """
Evaluate relevance of retrieved content to user question.

Content:
{context}

Question: {question}

Respond only: "yes" or "no"
- "yes": Content addresses the question
- "no": Content is irrelevant
"""

REWRITE_PROMPT = """
Improve this movie/TV query for better search results:
{question}

Improved query:"""

GENERATE_PROMPT = """
Recommend {max_recommendations} relevant TV shows/movies from this data, ranked by relevance:

Question: {question}
Data: {context}

Format:
1. Title - Brief reason (1 sentence)
2. Title - Brief reason
[etc.]

If no relevant titles found, say "No relevant recommendations found." Do not ask follow-up questions.
"""

__all__ = ["GRADE_PROMPT", "REWRITE_PROMPT", "GENERATE_PROMPT"]
