"""Extraction instruction for the vision model."""

EXTRACTION_PROMPT = """\
Analyze this UI design screenshot and extract the following information in JSON format:
{
  "components": ["list of UI components like buttons, inputs, nav bars, cards, etc."],
  "hierarchy": ["describe the visual hierarchy from most to least prominent elements"],
  "ctaCount": <number of call-to-action buttons/links>,
  "textBlocks": <number of distinct text content blocks>,
  "tapTargets": <number of interactive elements>,
  "flowSteps": <estimated number of steps in the user flow>,
  "dominantColors": ["list of main colors used"],
  "clutterScore": <0-1 score where 0 is minimal and 1 is very cluttered>,
  "readabilityScore": <0-1 score where 0 is hard to read and 1 is very readable>,
  "primaryCTAAboveFold": <true/false if main action is prominently visible>,
  "visualHierarchyStrong": <true/false if there's clear visual hierarchy>
}

Be precise and analytical. Focus on UX patterns and usability aspects.
Respond with the JSON object only.
"""
