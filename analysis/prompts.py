SYSTEM_PROMPTS = {
    "tasks": "You are an expert career counselor analyzing resume fit against O*NET job requirements.",
    "skills": "You are an expert skills analyst comparing candidate skills to job requirements.",
    "education": "You are an education requirements analyst.",
    "workActivities": "You are a work activity analyst comparing experience to job requirements.",
    "knowledge": "You are a knowledge requirements analyst.",
    "tools": "You are a technical tools analyst.",
}

JSON_RULES = """Guidelines:
- Be objective and evidence-based (no speculation).
- "matches" and "gaps" are arrays of short strings copied from the O*NET list.
- Output ONLY valid JSON, no markdown, text, or explanations."""


TASKS_TEMPLATE = """Compare the following resume experience with O*NET job tasks.

RESUME EXPERIENCE:
{experience}

O*NET JOB TASKS:
{tasks}

Respond strictly in JSON:
{{
  "score": <integer 0-100, overall match>,
  "matches": ["tasks the candidate has experience with"],
  "gaps": ["tasks the candidate lacks experience in"],
  "confidence": "low|medium|high"
}}

""" + JSON_RULES

SKILLS_TEMPLATE = """Compare resume skills with O*NET required skills.

RESUME SKILLS:
{resume_skills}

O*NET REQUIRED SKILLS:
{skills}

O*NET TECHNOLOGY SKILLS:
{technology_skills}

Respond strictly in JSON:
{{
  "score": <integer 0-100, overall skills match>,
  "matches": ["matching skills"],
  "gaps": ["missing critical skills"],
  "additional_skills": ["valuable skills the candidate has that are not required"],
  "confidence": "low|medium|high"
}}

""" + JSON_RULES

EDUCATION_TEMPLATE = """Compare candidate education with O*NET requirements.

CANDIDATE EDUCATION:
{education}

O*NET EDUCATION REQUIREMENTS:
{requirements}

JOB ZONE:
{job_zone}

Respond strictly in JSON:
{{
  "score": <integer 0-100, education match>,
  "meets_requirements": <true|false, minimum requirements met>,
  "education_level": "candidate's highest education level",
  "required_level": "required education level",
  "gaps": ["education gaps"],
  "confidence": "low|medium|high"
}}

""" + JSON_RULES

WORK_ACTIVITIES_TEMPLATE = """Compare resume work experience with O*NET work activities.

RESUME EXPERIENCE:
{experience}

O*NET WORK ACTIVITIES (important ones):
{activities}

Respond strictly in JSON:
{{
  "score": <integer 0-100, work activities match>,
  "matches": ["matching work activities"],
  "gaps": ["missing important activities"],
  "strength_areas": ["areas where the candidate shows strong experience"],
  "confidence": "low|medium|high"
}}

""" + JSON_RULES

KNOWLEDGE_TEMPLATE = """Compare the candidate's knowledge areas with O*NET requirements.

CANDIDATE KNOWLEDGE AREAS:
{knowledge_areas}

O*NET REQUIRED KNOWLEDGE:
{knowledge}

Respond strictly in JSON:
{{
  "score": <integer 0-100, knowledge match>,
  "matches": ["matching knowledge areas"],
  "gaps": ["missing knowledge areas"],
  "recommendations": ["specific recommendations for knowledge gaps"],
  "confidence": "low|medium|high"
}}

""" + JSON_RULES

TOOLS_TEMPLATE = """Compare the candidate's tools/software experience with O*NET requirements.

CANDIDATE TOOLS:
{resume_tools}

O*NET REQUIRED TOOLS:
{tools}

Respond strictly in JSON:
{{
  "score": <integer 0-100, tools match>,
  "matches": ["matching tools"],
  "gaps": ["missing critical tools"],
  "alternative_tools": ["tools the candidate has that could substitute for missing ones"],
  "confidence": "low|medium|high"
}}

""" + JSON_RULES
