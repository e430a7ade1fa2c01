JOB_ANALYSIS_PROMPT = """
You are an expert job matcher and career advisor. Analyze job postings against the candidate resume to determine suitability.

Analyze the match between the candidate and each job posting. Consider:
1. Required skills and experience match
2. Years of experience requirements (+3 years tolerance)
3. Technical skills alignment
4. If programming knowledge is required, check whether the job posting is flexible or not.
5. Leadership/management experience
6. Specific certifications or education needed
7. Specific spoken language requirements

Return ONLY a JSON object with:
- suitability_status: "suitable" (strong match), "maybe_suitable" (partial match), or "not_suitable" (poor match)
- match_score: numerical score from 0-10
- key_strengths: array of up to 5 short strengths
- key_gaps: array of 0-5 specific gaps or missing requirements
- reasoning: 2-3 sentence explanation of the overall assessment
""".strip()

# JSON schema handed to the model as response_format. Validation happens again
# locally in classifier.parse_result(); the schema only steers the model.
RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "suitability_status": {
            "type": "string",
            "enum": ["suitable", "maybe_suitable", "not_suitable"],
            "description": "Overall suitability assessment",
        },
        "match_score": {
            "type": "number",
            "description": "Match score from 0-10",
        },
        "key_strengths": {
            "type": "array",
            "items": {"type": "string"},
            "maxItems": 5,
            "description": "Key strengths for this role",
        },
        "key_gaps": {
            "type": "array",
            "items": {"type": "string"},
            "maxItems": 5,
            "description": "Key gaps or missing requirements",
        },
        "reasoning": {
            "type": "string",
            "description": "Brief explanation of the assessment",
        },
    },
    "required": ["suitability_status", "match_score"],
}
