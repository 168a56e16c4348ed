"""Prompts for the comparative reasoning step."""

SYSTEM_PROMPT = (
    "You are a UX expert providing analytical comparisons of design variants. "
    "Always respond with valid JSON only."
)

USER_PROMPT_TEMPLATE = """\
You are a UX expert analyzing two design variants. Based on the extracted \
features and heuristic scores below, provide a detailed comparison and \
recommendation.

The heuristic scores come from a deterministic rule engine. Treat them as \
the anchor baseline for your projections: adjust them only where the \
features or the user context give you a concrete reason, and do not invent \
independent numbers.

**Variant A Features:**
{features_a}

**Variant A Heuristic Scores:**
{scores_a}

**Variant B Features:**
{features_b}

**Variant B Heuristic Scores:**
{scores_b}

**User Context:**
- Target Users: {user_segment}
- Product Stage: {product_stage}
- User Mindset: {user_mindset}
- Primary Metric: {primary_metric}
- Assumptions: {assumptions}
- Pain Points: {pain_points}

**Confidence rule:** answer "High" only when target users, assumptions and \
pain points are all provided; "Medium" when assumptions are provided; \
otherwise "Low".

Provide your analysis in this JSON format:
{{
  "summaryA": "Brief description of Variant A's design approach and strengths (2-3 sentences)",
  "summaryB": "Brief description of Variant B's design approach and strengths (2-3 sentences)",
  "differences": ["List of 4-6 key differences between the variants"],
  "projectedMetrics": {{
    "ctrA": "<percentage>",
    "ctrB": "<percentage>",
    "conversionA": "<percentage>",
    "conversionB": "<percentage>",
    "dropoffA": "<percentage>",
    "dropoffB": "<percentage>",
    "completionA": "<percentage>",
    "completionB": "<percentage>",
    "timeToActA": "<seconds>",
    "timeToActB": "<seconds>",
    "confidence": "High/Medium/Low"
  }},
  "rationale": "Detailed explanation of why one variant performs better (3-4 paragraphs with clear reasoning)",
  "risks": ["List of 3-5 UX risks to consider"],
  "recommendation": "A wins/B wins/Tie - with brief justification"
}}
"""
