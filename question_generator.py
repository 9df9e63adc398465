"""AI-backed question generation with a deterministic fallback.

Nothing in this module raises on AI trouble: every upstream failure, throttle,
local rate limit or unusable answer is logged and replaced by fallback output,
so callers only ever see less varied questions, never an error.
"""
import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional

import config
from errors import UpstreamGenerationError
from plans import generation_count, get_plan_limits
from time_window import duration_minutes
from utilities.constants import (
    AI_ACCEPTANCE_CAP, AI_ACCEPTANCE_RATIO, MAX_SEEDED_QUESTIONS, MIN_SEEDED_QUESTIONS,
    QUESTIONS_PER_MINUTE,
)
from utilities.fallback_questions import synthesize_fallback_questions
from utilities.question_parser import ParseOk, parse_questions

logger = logging.getLogger(__name__)

CATEGORY_FRAMING = {
    'technical': "technical skills, programming concepts, tools, frameworks, and domain-specific knowledge",
    'behavioral': "past experiences, teamwork, leadership, problem-solving approach, and interpersonal skills using the STAR method",
    'situational': "hypothetical scenarios, decision-making, prioritization, and how they would handle specific workplace situations",
    'hr': "company culture fit, career goals, motivation, salary expectations, and general professional background",
    'general': "a balanced mix of role knowledge, experience, and motivation",
}

DIFFICULTY_FRAMING = {
    'beginner': "entry-level, basic concepts, fundamental knowledge, and simple scenarios",
    'intermediate': "mid-level, applied knowledge, moderate complexity, and real-world applications",
    'advanced': "senior-level, complex scenarios, leadership situations, and strategic thinking",
}

CATEGORY_TIPS = {
    'technical': "Explain your reasoning and give a concrete example",
    'behavioral': "Use the STAR method",
    'situational': "Walk through your decision process step by step",
    'hr': "Be honest and connect your answer to the role",
    'general': "Keep your answer specific and concise",
}

INTERVIEW_MIX = {
    'basic': "- 40% technical\n- 40% behavioral\n- 20% situational",
    'intermediate': "- 50% technical\n- 30% behavioral\n- 20% problem-solving",
    'hard': "- 60% advanced technical\n- 20% system design\n- 20% leadership",
}

INTERVIEWER_INSTRUCTION = (
    "You are an expert technical interviewer. Generate clear, relevant questions based on: "
    "job requirements, required skills, interview duration and difficulty level. "
    "Return ONLY plain text questions, one per line."
)

EVALUATOR_INSTRUCTION = (
    "Evaluate interview responses on: relevance (0-3), technical accuracy (0-4), "
    "communication (0-3). Return ONLY a single number between 0-10."
)

_LIST_MARKER_RE = re.compile(r'^[0-9.\-*•)]')
_NUMBER_RE = re.compile(r'\d+')

DEFAULT_RESPONSE_SCORE = 5


@dataclass
class GenerationResult:
    questions: List[dict]
    is_ai_generated: bool


def acceptance_threshold(count: int) -> float:
    return min(count * AI_ACCEPTANCE_RATIO, AI_ACCEPTANCE_CAP)


def seeded_question_count(start_time: str, end_time: str, interview_type: str) -> int:
    """Questions to seed an interview with: ~rate per minute, clamped to 5..25."""
    rate = QUESTIONS_PER_MINUTE.get(interview_type, QUESTIONS_PER_MINUTE['intermediate'])
    count = math.floor(duration_minutes(start_time, end_time) * rate)
    return max(MIN_SEEDED_QUESTIONS, min(count, MAX_SEEDED_QUESTIONS))


class QuestionBankGenerator:
    def __init__(self, client=None, ai_enabled: Optional[bool] = None, fallback=synthesize_fallback_questions):
        self.client = client
        self.ai_enabled = (not config.DISABLE_AI) if ai_enabled is None else ai_enabled
        self.fallback = fallback

    def _ai_available(self) -> bool:
        return self.ai_enabled and self.client is not None

    def build_bank_prompt(self, job_title, category, difficulty, plan_type, count, industry=None, skills=None):
        category_text = CATEGORY_FRAMING.get(category, CATEGORY_FRAMING['general'])
        difficulty_text = DIFFICULTY_FRAMING.get(difficulty, DIFFICULTY_FRAMING['intermediate'])
        skills_text = ', '.join(skills) if skills else 'General'
        return f"""Generate {count} {category} interview questions for a {job_title} position.

Context:
- Job Title: {job_title}
- Category: {category} ({category_text})
- Difficulty: {difficulty} ({difficulty_text})
- Plan Type: {plan_type}
- Industry: {industry or 'General'}
- Required Skills: {skills_text}

Requirements:
1. Questions should be specific to the {job_title} role
2. Focus on {category_text}
3. Appropriate for {difficulty} level candidates
4. Include practical, real-world scenarios
5. Ensure questions assess relevant skills and competencies

For each question, provide:
- A clear, well-structured interview question
- Brief guidance on what constitutes a good answer
- 2-3 specific tips for answering effectively
- Relevant keywords/concepts being assessed

Return as a JSON array of exactly {count} objects, each with this exact structure:
{{
  "question": "The interview question",
  "expectedAnswer": "Brief guidance on good answer components",
  "tips": ["Tip 1", "Tip 2", "Tip 3"],
  "keywords": ["keyword1", "keyword2", "keyword3"]
}}

Important: Return ONLY the JSON array, no additional text or formatting."""

    def _complete_ai_question(self, question: dict, job_title: str, category: str, difficulty: str) -> dict:
        tips = question['tips'] or [CATEGORY_TIPS.get(category, CATEGORY_TIPS['general'])]
        extra = [k for k in (job_title.strip().lower(), difficulty) if k and k not in question['keywords']]
        return {
            'question': question['question'],
            'expectedAnswer': question['expectedAnswer'],
            'tips': tips,
            'keywords': question['keywords'] + extra,
        }

    def _generate_with_ai(self, job_title, category, difficulty, plan_type, count, industry, skills) -> List[dict]:
        prompt = self.build_bank_prompt(job_title, category, difficulty, plan_type, count, industry, skills)
        text = self.client.generate(prompt)
        result = parse_questions(text, limit=count)
        if not isinstance(result, ParseOk):
            raise UpstreamGenerationError(f"Unusable AI output: {result.reason}")
        if len(result.questions) < acceptance_threshold(count):
            raise UpstreamGenerationError(
                f"Insufficient valid questions generated ({len(result.questions)}/{count})"
            )
        return [self._complete_ai_question(q, job_title, category, difficulty) for q in result.questions]

    def generate_questions(self, job_title: str, category: str, difficulty: str, plan_type: str,
                           industry: Optional[str] = None, skills: Optional[list] = None) -> GenerationResult:
        """Exactly `generation_count(plan_type)` questions for one bank."""
        count = generation_count(plan_type)

        if not self._ai_available():
            logger.info("AI generation disabled, using fallback questions for %s/%s/%s", job_title, category, difficulty)
            return GenerationResult(self.fallback(job_title, category, difficulty, count), False)
        if not get_plan_limits(plan_type).has_ai_generation:
            return GenerationResult(self.fallback(job_title, category, difficulty, count), False)

        try:
            questions = self._generate_with_ai(job_title, category, difficulty, plan_type, count, industry, skills)
        except UpstreamGenerationError as e:
            logger.warning("AI question generation failed for %s/%s/%s, using fallback: %s",
                           job_title, category, difficulty, e)
            return GenerationResult(self.fallback(job_title, category, difficulty, count), False)

        if len(questions) < count:
            # Top up from the fallback pool past the ones AI already covered
            padding = self.fallback(job_title, category, difficulty, count)[len(questions):]
            questions = questions + padding
        return GenerationResult(questions, True)

    def generate_interview_questions(self, interview_data: dict) -> List[str]:
        """Seed questions for a new interview. Returns [] when AI is unavailable or fails."""
        if not self._ai_available():
            return []
        try:
            start_time, end_time = interview_data['startTime'], interview_data['endTime']
            interview_type = interview_data.get('interviewType', 'intermediate')
            minutes = duration_minutes(start_time, end_time)
            count = seeded_question_count(start_time, end_time, interview_type)
            skills = interview_data.get('skills') or []
            resume = interview_data.get('resumeText') or ''
            background = f"Candidate Background: {resume[:500]}" if resume else ''

            prompt = f"""
Generate {count} interview questions for:
Position: {interview_data.get('jobTitle')} at {interview_data.get('companyName')}
Level: {interview_type}
Duration: {minutes} minutes
Skills: {', '.join(skills)}
Job Description: {(interview_data.get('jobDescription') or '')[:1000]}
{background}

Include:
{INTERVIEW_MIX.get(interview_type, INTERVIEW_MIX['intermediate'])}

Generate only the questions, one per line, without numbering."""

            text = self.client.generate(prompt, system_instruction=INTERVIEWER_INSTRUCTION)
        except (UpstreamGenerationError, KeyError, ValueError) as e:
            logger.warning("Interview question generation failed: %s", e)
            return []

        lines = [line.strip() for line in text.split('\n')]
        return [line for line in lines if line and not _LIST_MARKER_RE.match(line)][:count]

    def evaluate_response(self, question: str, answer: str, job_context: dict) -> int:
        """Score an answer 1-10 with the AI; 5 when AI is unavailable or the reply is not a number."""
        if not self._ai_available() or not (answer or '').strip():
            return DEFAULT_RESPONSE_SCORE
        prompt = (
            f"Question: {question}\n"
            f"Answer: {answer}\n"
            f"Job: {job_context.get('jobTitle')} at {job_context.get('companyName')}\n"
            "Score this response (0-10):"
        )
        try:
            text = self.client.generate(prompt, system_instruction=EVALUATOR_INSTRUCTION)
        except UpstreamGenerationError as e:
            logger.warning("Response evaluation failed: %s", e)
            return DEFAULT_RESPONSE_SCORE
        match = _NUMBER_RE.search(text or '')
        score = int(match.group()) if match else DEFAULT_RESPONSE_SCORE
        return max(1, min(score or DEFAULT_RESPONSE_SCORE, 10))
