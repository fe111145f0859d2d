"""System prompts for LLM-backed semantic matching."""

SEMANTIC_MATCH_SYSTEM_PROMPT = """You are a semantic matching expert for a recruiting marketplace.
Compare two short profile values written by different people and rate how closely they describe the same thing.

Rules:
- Judge meaning, not wording. Synonyms and paraphrases count as matches.
- Ignore spelling, casing and punctuation differences.
- Unrelated or contradictory statements score near 0.
- Return a score from 0 to 100 and a one-sentence reasoning."""

SEMANTIC_MATCH_SCHEMA = {
    "name": "semantic_match",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "score": {
                "type": "number",
                "description": "Match score from 0 (unrelated) to 100 (same meaning)."
            },
            "reasoning": {
                "type": "string",
                "description": "Brief explanation of the score."
            }
        },
        "required": ["score", "reasoning"],
        "additionalProperties": False
    }
}


def build_semantic_match_message(text_a: str, text_b: str, context: str = None) -> str:
    context_line = f"Context: {context}\n\n" if context else ""
    return f"{context_line}Text 1: {text_a}\n\nText 2: {text_b}\n\nProvide match score and reasoning."
