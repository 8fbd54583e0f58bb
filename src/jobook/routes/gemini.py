"""Admin database chat and AI CV drafting."""
import json
import sqlite3

from flask import Blueprint, current_app, jsonify

from ..auth import admin_required, login_required
from ..db import connect_readonly
from ..errors import ApiError
from ..gemini_client import GeminiError, parse_json_text, strip_fences
from . import body, settings, str_arg

bp = Blueprint('gemini', __name__, url_prefix='/gemini')

FORBIDDEN_COLUMNS = ('password_hash', 'tax_code')
MAX_ROWS = 200
# sqlite VM instructions a generated query may run before it is interrupted
MAX_SQL_STEPS = 5_000_000
_STEP_INTERVAL = 10_000

REFUSAL = 'Sorry! I am not allowed to access sensitive information.'
REPHRASE = 'I did not quite understand your question, could you rephrase it?'
UNAVAILABLE = 'Sorry, the system is having trouble right now. Please try again later.'

SCHEMA_DESCRIPTION = """
Database jobook (SQLite, timestamps are UNIX epoch seconds):

1. users
- id (PK)
- full_name
- email (unique)
- password_hash
- account_type ('candidate' | 'company' | 'admin')
- bio
- address
- avatar_url
- company_id (FK -> companies.id, nullable)
- created_at, updated_at

2. cvs
- id (PK)
- name
- user_id (FK -> users.id)
- file_url
- is_active (0/1)
- created_at

3. posts
- id (PK)
- user_id (FK -> users.id)
- company_id (FK -> companies.id, nullable)
- post_type ('find_job' | 'find_candidate')
- title
- description
- attached_cv_id (FK -> cvs.id)
- start_at, end_at (recruiting window, nullable)
- created_at

4. applications
- id (PK)
- post_id (FK -> posts.id)
- cv_id (FK -> cvs.id)
- applicant_id (FK -> users.id)
- status ('pending','reviewed','accepted','rejected')
- created_at

5. follows
- follower_id (FK -> users.id)
- following_id (FK -> users.id)
- created_at

6. companies
- id (PK)
- name
- legal_name (nullable)
- tax_code (unique)
- code (unique)
- email
- address
- contact_phone (nullable)
- logo_url (nullable)
- status ('pending' | 'accepted' | 'rejected')
- reviewed_by_user_id (FK -> users.id, nullable)
- review_note (nullable)
- reviewed_at (nullable)
- created_at, updated_at
"""

SQL_PROMPT = """You are an SQL assistant. Given this schema:
{schema}

The user asks: "{prompt}"

Rules:
1. Produce only one valid SELECT statement for SQLite.
2. Never query these sensitive columns: {forbidden}.
3. Return the SQL statement only, no explanation, no markdown.
"""

ANSWER_PROMPT = """The user asked: "{prompt}"
Data from the database:
{rows}

Answer naturally, briefly and clearly, in the language of the question.
"""

CV_PROMPT = """You are a professional assistant helping the user write a CV from the data they entered.

Return a single valid JSON object (no markdown, no explanation) with exactly this schema:
{{
  "fullName": string, "email": string, "phone": string, "address": string,
  "summary": string, "appliedPosition": string, "experienceYears": string,
  "website": string, "dob": string, "gender": string, "avatar": string,
  "educationList": [{{"time": "2016 - 2020", "school": "", "major": "", "result": "", "note": ""}}],
  "experienceList": [{{"time": "03/2022 - 02/2025", "company": "", "position": "", "details": ""}}],
  "activityList": [{{"time": "08/2016 - 08/2018", "org": "", "role": "", "details": ""}}],
  "certificatesList": [{{"time": "06/2022", "name": ""}}],
  "awardsList": [{{"time": "2020", "title": ""}}],
  "skillsList": [{{"name": "React", "description": ""}}],
  "projectsList": [{{"name": "", "description": ""}}]
}}

Template: {template}

User data:
{data}

If something is missing, fill in a sensible placeholder.
"""

CV_SCALARS = ('fullName', 'email', 'phone', 'address', 'summary', 'appliedPosition', 'experienceYears',
              'website', 'dob', 'gender', 'avatar')
CV_LISTS = {
    'educationList': ('time', 'school', 'major', 'result', 'note'),
    'experienceList': ('time', 'company', 'position', 'details'),
    'skillsList': ('name', 'description'),
    'certificatesList': ('time', 'name'),
    'projectsList': ('name', 'description'),
    'activityList': ('time', 'org', 'role', 'details'),
    'awardsList': ('time', 'title'),
}


def _gemini():
    return current_app.extensions['jobook.gemini']


def mentions_forbidden(text: str) -> bool:
    low = (text or '').lower()
    return any(col in low for col in FORBIDDEN_COLUMNS)


def run_readonly(sql: str, max_steps: int = MAX_SQL_STEPS):
    con = connect_readonly(settings().db_path)
    ticks = [0]

    def over_budget():
        ticks[0] += 1
        return ticks[0] * _STEP_INTERVAL > max_steps

    # a non-zero return aborts the statement with OperationalError('interrupted')
    con.set_progress_handler(over_budget, _STEP_INTERVAL)
    try:
        return [dict(r) for r in con.execute(sql).fetchmany(MAX_ROWS)]
    finally:
        con.close()


def _chat_error(message: str):
    return jsonify({'error': 'Gemini DB error', 'message': message}), 500


@bp.post('/chat')
@admin_required
def chat():
    prompt = str_arg(body().get('prompt'), 'prompt')
    if not prompt:
        raise ApiError('Prompt is required')
    client = _gemini()
    try:
        sql = strip_fences(client.generate_text(SQL_PROMPT.format(
            schema=SCHEMA_DESCRIPTION, prompt=prompt, forbidden=', '.join(FORBIDDEN_COLUMNS))))
        current_app.logger.info('Gemini SQL: %s', sql)
        if mentions_forbidden(sql):
            return jsonify({'response': REFUSAL})
        if not sql.lower().startswith('select'):
            return jsonify({'response': REPHRASE, 'sql': sql})

        rows = run_readonly(sql)
        answer = client.generate_text(ANSWER_PROMPT.format(
            prompt=prompt, rows=json.dumps(rows, ensure_ascii=False, indent=2, default=str)))
        return jsonify({'response': answer, 'sql': sql, 'data': rows})
    except (sqlite3.Error, sqlite3.Warning) as e:
        current_app.logger.warning('Generated SQL failed: %s', e)
        return _chat_error(REFUSAL if mentions_forbidden(str(e)) else REPHRASE)
    except GeminiError as e:
        current_app.logger.error('Gemini chat failed: %s', e)
        return _chat_error(UNAVAILABLE)


def normalize_cv(raw) -> dict:
    raw = raw if isinstance(raw, dict) else {}
    out = {key: raw.get(key) or '' for key in CV_SCALARS}
    for key, fields in CV_LISTS.items():
        items = raw.get(key) if isinstance(raw.get(key), list) else []
        out[key] = [{f: item.get(f) or '' for f in fields} for item in items if isinstance(item, dict)]
    return out


@bp.post('/generate-cv')
@login_required
def generate_cv():
    data = body()
    payload = data.get('data')
    if not isinstance(payload, dict) or not payload.get('fullName'):
        raise ApiError('data.fullName is required')
    try:
        text = _gemini().generate_text(CV_PROMPT.format(
            template=data.get('template') or 'default', data=json.dumps(payload, ensure_ascii=False, indent=2)))
    except GeminiError as e:
        current_app.logger.error('CV generation failed: %s', e)
        return jsonify({'error': 'Could not generate a CV with AI, please try again later.'}), 500
    try:
        parsed = parse_json_text(text)
    except GeminiError:
        current_app.logger.warning('CV generation returned unparsable JSON')
        return jsonify({'content': text})
    if isinstance(parsed, dict) and isinstance(parsed.get('data'), dict):
        parsed = parsed['data']
    return jsonify({'content': normalize_cv(parsed)})
