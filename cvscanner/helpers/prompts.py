EXTRACT_PROMPT = """You are an expert CV/Resume data extractor. I will give you a PDF file of a CV/Resume.

Your task: Extract EVERY piece of information from this CV into a structured JSON format.

Return ONLY a valid JSON array (no markdown, no code fences, no extra text). Each element must have exactly these 3 keys:
- "section": The section name (use the original header from the CV)
- "field": A descriptive label for this data point
- "value": The actual data

RULES:
1. Always extract dates, periods and durations for every item that has them (jobs, education, certifications, projects, organizations). Use the field name "Period", "Date" or "Duration".
2. For sections with multiple entries, number them: "Experience #1", "Experience #2", "Certification #1", ...
3. Within each numbered entry include, when present and in this order: Title/Name/Position, Organization/Company/Institution/Issuer, Period/Date, Location, Description/Achievements (bullet points joined with " | ").
4. Certifications: name, issuing organization, date/period and credential ID if present.
5. Skills: one comma-separated value per skill category.
6. Languages: language name and proficiency level.
7. Do not skip, summarize or omit any data.
8. Keep the original language of the CV content.

Example format:
[
  {"section": "Personal Information", "field": "Name", "value": "John Doe"},
  {"section": "Personal Information", "field": "Email", "value": "john@example.com"},
  {"section": "Experience #1", "field": "Position", "value": "Senior Developer"},
  {"section": "Experience #1", "field": "Company", "value": "Tech Corp"},
  {"section": "Experience #1", "field": "Period", "value": "Jan 2023 - Present"},
  {"section": "Experience #1", "field": "Achievements", "value": "Led team of 5 | Improved performance by 40%"},
  {"section": "Certification #1", "field": "Name", "value": "AWS Solutions Architect"},
  {"section": "Certification #1", "field": "Issuer", "value": "Amazon Web Services"},
  {"section": "Certification #1", "field": "Date", "value": "March 2023"}
]
"""

NARRATIVE_PROMPT = """You are an expert HR recruiter and career advisor. I will give you:
1. A person's CV data (structured as JSON)
2. A job title and job description
3. A match percentage that has ALREADY been computed from semantic embeddings

The match percentage is {match_percentage}%. It is final. Do NOT recompute, adjust or contradict it,
and do not output a different number. Your analysis must be consistent with a {match_percentage}% match.

Return ONLY a valid JSON object (no markdown, no code fences, no extra text) with exactly these keys:
- "summary": A brief 1-2 sentence overall assessment consistent with the {match_percentage}% match
- "strengths": An array of strings listing the candidate's strengths that match the job (max 5 items)
- "weaknesses": An array of strings listing gaps or missing qualifications (max 5 items)
- "suggestions": An array of strings with actionable advice to improve the match (max 3 items)

Be honest and specific. Reference actual skills, experiences and requirements in your analysis.
Keep the response language matching the job description language.

CV DATA:
{cv_json}

JOB TITLE: {job_title}

JOB DESCRIPTION:
{job_description}
"""
