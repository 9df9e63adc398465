"""Deterministic question synthesis used whenever AI generation is unavailable.

Each (category, difficulty) pool holds five hand-written templates with a
``{job_title}`` placeholder. ``synthesize_fallback_questions`` always returns
exactly the requested number of questions: once a pool is exhausted it cycles
from the top again and tags the repeats " (Scenario N)".
"""
import logging

logger = logging.getLogger(__name__)


def _q(question, expected_answer, tips, keywords):
    return {'question': question, 'expectedAnswer': expected_answer, 'tips': tips, 'keywords': keywords}


FALLBACK_POOLS = {
    'technical': {
        'beginner': [
            _q("What are the fundamental skills required for a {job_title} role?",
               "Should mention relevant technologies, frameworks, and core competencies",
               ["Be specific about your experience", "Mention recent projects or coursework", "Show enthusiasm for learning"],
               ["technical skills", "fundamentals", "experience"]),
            _q("Explain a basic concept in your field that every {job_title} should understand.",
               "Should demonstrate understanding of core concepts with a clear explanation",
               ["Use simple language", "Provide examples", "Show practical understanding"],
               ["concepts", "explanation", "understanding"]),
            _q("What tools and technologies do you use for {job_title} work?",
               "Should mention relevant tools, software, and technologies specific to the role",
               ["Mention specific tools you've used", "Explain how you use them", "Show continuous learning"],
               ["tools", "technologies", "software"]),
            _q("How do you stay updated with the latest trends relevant to a {job_title}?",
               "Should show commitment to continuous learning and professional development",
               ["Mention specific resources", "Show genuine interest", "Discuss recent learning"],
               ["learning", "trends", "professional development"]),
            _q("Describe your typical workflow when starting a new {job_title} project.",
               "Should demonstrate a systematic approach and understanding of the project lifecycle",
               ["Show organized thinking", "Mention planning steps", "Include quality checks"],
               ["workflow", "project management", "process"]),
        ],
        'intermediate': [
            _q("Describe a challenging technical problem you solved in a previous {job_title} role.",
               "Should use the STAR method and demonstrate a problem-solving approach",
               ["Structure your answer clearly", "Highlight your specific contributions", "Mention the impact"],
               ["problem-solving", "technical challenges", "experience"]),
            _q("How do you approach debugging and troubleshooting as a {job_title}?",
               "Should demonstrate a systematic debugging methodology and knowledge of tools",
               ["Mention specific debugging tools", "Show a logical approach", "Include prevention strategies"],
               ["debugging", "troubleshooting", "methodology"]),
            _q("Explain how you would optimize performance in a {job_title} context.",
               "Should show understanding of performance bottlenecks and optimization techniques",
               ["Mention specific optimization techniques", "Discuss monitoring and measurement", "Show analytical thinking"],
               ["performance", "optimization", "analysis"]),
            _q("How do you ensure quality and maintainability in your {job_title} deliverables?",
               "Should demonstrate knowledge of best practices and quality assurance",
               ["Mention specific practices and tools", "Discuss review processes", "Show attention to detail"],
               ["quality", "maintainability", "best practices"]),
            _q("Walk me through how you would test a feature you built as a {job_title}.",
               "Should cover test levels, edge cases, and automation",
               ["Separate unit and integration concerns", "Name concrete edge cases", "Explain what you automate"],
               ["testing", "edge cases", "automation"]),
        ],
        'advanced': [
            _q("How would you architect a scalable solution for a high-traffic system in a {job_title} context?",
               "Should demonstrate architectural thinking and scalability considerations",
               ["Consider trade-offs", "Discuss scalability factors", "Mention monitoring and maintenance"],
               ["architecture", "scalability", "system design"]),
            _q("As a senior {job_title}, how would you lead a technical migration or major refactoring?",
               "Should show leadership skills and technical project management",
               ["Discuss risk assessment", "Mention stakeholder communication", "Show strategic thinking"],
               ["migration", "refactoring", "technical leadership"]),
            _q("How do you evaluate and choose between competing technical solutions as a {job_title}?",
               "Should demonstrate a decision-making framework and technical judgment",
               ["Mention evaluation criteria", "Discuss pros and cons", "Show an analytical approach"],
               ["technical decisions", "evaluation", "judgment"]),
            _q("Describe how you would diagnose a production incident affecting your work as a {job_title}.",
               "Should cover triage, root-cause analysis, mitigation, and follow-up",
               ["Start with impact and containment", "Explain how you find the root cause", "Mention the post-mortem"],
               ["incident response", "root cause", "reliability"]),
            _q("How would you set technical standards for a team of {job_title} engineers?",
               "Should show how standards are defined, adopted, and enforced without blocking delivery",
               ["Involve the team", "Automate enforcement", "Revisit standards regularly"],
               ["standards", "code review", "mentoring"]),
        ],
    },
    'behavioral': {
        'beginner': [
            _q("Tell me about yourself and why you want to work as a {job_title}.",
               "Should connect background to role requirements and show genuine interest",
               ["Keep it concise and relevant", "Focus on professional background", "Show enthusiasm"],
               ["background", "motivation", "career goals"]),
            _q("Describe a time you had to learn something new quickly to succeed as a {job_title}.",
               "Should demonstrate learning agility and adaptability",
               ["Use the STAR method", "Show your learning strategy", "Highlight the application"],
               ["learning", "adaptability", "growth"]),
            _q("Tell me about a time you worked effectively in a team on {job_title} tasks.",
               "Should demonstrate collaboration and teamwork skills",
               ["Focus on your specific contributions", "Show collaboration skills", "Highlight team success"],
               ["teamwork", "collaboration", "communication"]),
            _q("Describe a challenge you faced while preparing for a {job_title} career and how you overcame it.",
               "Should show problem-solving approach and resilience",
               ["Use the STAR method", "Focus on your actions", "Show a positive outcome"],
               ["challenge", "problem-solving", "resilience"]),
            _q("Tell me about feedback you received on your {job_title} work and what you changed.",
               "Should show openness to feedback and concrete improvement",
               ["Pick a real example", "Explain what you changed", "Show the result"],
               ["feedback", "self-improvement", "coachability"]),
        ],
        'intermediate': [
            _q("Describe a time you had to work with a difficult team member as a {job_title}.",
               "Should demonstrate interpersonal skills and conflict resolution",
               ["Use the STAR method", "Focus on your actions", "Highlight a positive outcome"],
               ["teamwork", "conflict resolution", "interpersonal skills"]),
            _q("Tell me about a time you had to manage competing priorities in a {job_title} role.",
               "Should demonstrate time management and prioritization skills",
               ["Explain your prioritization strategy", "Show the decision-making process", "Highlight results"],
               ["prioritization", "time management", "decision making"]),
            _q("Describe a situation where you had to adapt to significant changes in your {job_title} work.",
               "Should show flexibility and change management skills",
               ["Show a positive attitude", "Mention adaptation strategies", "Highlight successful outcomes"],
               ["adaptability", "change management", "flexibility"]),
            _q("Tell me about a mistake you made as a {job_title} and how you handled it.",
               "Should demonstrate accountability and learning from failure",
               ["Take full responsibility", "Focus on lessons learned", "Mention prevention measures"],
               ["accountability", "mistake handling", "learning"]),
            _q("Give an example of when you went above and beyond in your {job_title} role.",
               "Should show initiative and commitment to excellence",
               ["Be specific about the extra effort", "Highlight the impact", "Show passion for the work"],
               ["initiative", "excellence", "commitment"]),
        ],
        'advanced': [
            _q("Tell me about a time you led a {job_title} team through a significant change or challenge.",
               "Should demonstrate leadership skills and change management abilities",
               ["Focus on leadership actions", "Discuss communication strategies", "Highlight team outcomes"],
               ["leadership", "change management", "team leadership"]),
            _q("Describe how you've mentored or developed junior {job_title} colleagues.",
               "Should show coaching and development skills",
               ["Give specific examples", "Show empathy and patience", "Highlight mentee success"],
               ["mentoring", "development", "coaching"]),
            _q("Tell me about a difficult decision you made as a {job_title} with limited information.",
               "Should demonstrate decision-making under uncertainty",
               ["Explain your thought process", "Show risk assessment", "Highlight the decision rationale"],
               ["decision making", "uncertainty", "risk assessment"]),
            _q("Describe a time you influenced stakeholders outside your team as a {job_title}.",
               "Should show influence without authority and stakeholder management",
               ["Explain how you built trust", "Show how you framed the benefits", "Describe the outcome"],
               ["influence", "stakeholder management", "communication"]),
            _q("Tell me about a project you led as a {job_title} that failed and what you learned.",
               "Should show ownership, reflection, and how lessons were applied later",
               ["Own the outcome", "Be specific about the root causes", "Show what you do differently now"],
               ["ownership", "reflection", "resilience"]),
        ],
    },
    'situational': {
        'beginner': [
            _q("How would you prioritize tasks if given multiple assignments as a {job_title}?",
               "Should show understanding of prioritization frameworks and time management",
               ["Mention specific prioritization methods", "Consider stakeholder impact", "Show systematic thinking"],
               ["prioritization", "time management", "organization"]),
            _q("What would you do if you didn't understand a requirement in a {job_title} project?",
               "Should show proactive communication and problem-solving approach",
               ["Show initiative to clarify", "Mention documentation", "Ask relevant questions"],
               ["communication", "clarification", "proactive"]),
            _q("How would you handle a situation where you made a mistake in your {job_title} work?",
               "Should demonstrate accountability and a learning approach",
               ["Take responsibility", "Focus on solutions", "Show a learning mindset"],
               ["accountability", "mistake handling", "learning"]),
            _q("What would you do on your first week as a {job_title} if you had no assigned work?",
               "Should show initiative, curiosity, and appropriate communication",
               ["Ask your manager for context", "Study the existing work", "Offer to help teammates"],
               ["initiative", "onboarding", "communication"]),
            _q("How would you respond if a teammate asked for help while you were busy with a {job_title} deadline?",
               "Should balance helpfulness with commitments and communicate clearly",
               ["Assess urgency on both sides", "Offer a concrete time", "Keep your lead informed"],
               ["teamwork", "time management", "communication"]),
        ],
        'intermediate': [
            _q("What would you do if you discovered a significant error in a {job_title} deliverable you shipped?",
               "Should demonstrate accountability and problem-solving approach",
               ["Take responsibility", "Focus on solution steps", "Mention prevention strategies"],
               ["accountability", "error handling", "problem-solving"]),
            _q("How would you handle conflicting feedback from different stakeholders on a {job_title} project?",
               "Should show diplomatic communication and stakeholder management",
               ["Show active listening", "Seek common ground", "Propose solutions"],
               ["stakeholder management", "communication", "conflict resolution"]),
            _q("What would you do if you disagreed with your manager's approach to a {job_title} task?",
               "Should demonstrate professional communication and respect",
               ["Show respect for leadership", "Present alternatives professionally", "Seek collaborative solutions"],
               ["professional communication", "disagreement", "collaboration"]),
            _q("How would you prioritize multiple urgent {job_title} tasks with competing deadlines?",
               "Should show strategic thinking and prioritization frameworks",
               ["Mention specific prioritization methods", "Consider stakeholder impact", "Show systematic decision-making"],
               ["prioritization", "task management", "decision making"]),
            _q("If you noticed a colleague struggling with {job_title} responsibilities, how would you help?",
               "Should demonstrate teamwork and mentoring abilities",
               ["Show empathy and support", "Offer specific help", "Maintain professional boundaries"],
               ["mentoring", "teamwork", "support"]),
        ],
        'advanced': [
            _q("How would you handle your team disagreeing with a decision you made as a senior {job_title}?",
               "Should show leadership skills and the ability to build consensus",
               ["Listen to concerns", "Provide a clear rationale", "Seek collaborative solutions"],
               ["leadership", "decision making", "consensus building"]),
            _q("How would you manage a {job_title} project that is significantly behind schedule?",
               "Should demonstrate crisis management and recovery planning",
               ["Assess root causes", "Develop a recovery plan", "Communicate transparently"],
               ["crisis management", "project recovery", "planning"]),
            _q("How would you handle a key {job_title} team member leaving during a critical project?",
               "Should show contingency planning and team management skills",
               ["Assess impact", "Redistribute responsibilities", "Maintain team morale"],
               ["contingency planning", "team management", "adaptation"]),
            _q("How would you respond if leadership asked your {job_title} team to cut scope you consider essential?",
               "Should balance business constraints with quality and communicate trade-offs",
               ["Quantify the risk", "Offer alternatives", "Document the decision"],
               ["trade-offs", "negotiation", "risk management"]),
            _q("What would you do if you found a serious compliance or security gap in another team's {job_title} work?",
               "Should show escalation judgment, collaboration, and urgency",
               ["Verify the issue first", "Escalate through the right channel", "Help with remediation"],
               ["escalation", "security", "collaboration"]),
        ],
    },
    'hr': {
        'beginner': [
            _q("Why are you interested in this {job_title} position at our company?",
               "Should demonstrate research about the company and genuine interest",
               ["Research the company thoroughly", "Connect your goals with the company mission", "Show specific interest"],
               ["company research", "motivation", "cultural fit"]),
            _q("What are your strengths and how do they relate to this {job_title} position?",
               "Should connect personal strengths to role requirements",
               ["Give specific examples", "Connect to job requirements", "Show self-awareness"],
               ["strengths", "self-awareness", "job fit"]),
            _q("What are your career goals for the next few years as a {job_title}?",
               "Should show realistic planning and a growth mindset",
               ["Be specific and realistic", "Connect to role opportunities", "Show ambition"],
               ["career goals", "planning", "growth"]),
            _q("Why are you interested in {job_title} as a career?",
               "Should demonstrate genuine interest and understanding of the role",
               ["Show passion for the field", "Mention specific aspects you enjoy", "Connect to personal values"],
               ["career interest", "passion", "motivation"]),
            _q("What is an area you are working to improve as a {job_title}?",
               "Should show honest self-assessment and an improvement plan",
               ["Pick a genuine area", "Explain what you are doing about it", "Show progress"],
               ["self-awareness", "weaknesses", "growth"]),
        ],
        'intermediate': [
            _q("Where do you see yourself in 5 years in your {job_title} career?",
               "Should show realistic career planning and a growth mindset",
               ["Be realistic but ambitious", "Connect to role opportunities", "Show commitment to growth"],
               ["career goals", "growth", "planning"]),
            _q("What motivates you most about working as a {job_title}?",
               "Should show intrinsic motivation and alignment with the role",
               ["Be authentic", "Connect to job aspects", "Show long-term interest"],
               ["motivation", "work satisfaction", "values"]),
            _q("How do you handle stress and pressure in a {job_title} role?",
               "Should demonstrate stress management strategies and resilience",
               ["Give specific strategies", "Show self-awareness", "Mention positive outcomes"],
               ["stress management", "resilience", "coping strategies"]),
            _q("What do you think are the biggest challenges facing {job_title} professionals today?",
               "Should demonstrate industry awareness and critical thinking",
               ["Show industry knowledge", "Mention current trends", "Discuss potential solutions"],
               ["industry challenges", "trends", "critical thinking"]),
            _q("What kind of manager helps you do your best work as a {job_title}?",
               "Should show self-awareness about working style without being rigid",
               ["Be honest", "Give an example", "Show adaptability"],
               ["management style", "working style", "cultural fit"]),
        ],
        'advanced': [
            _q("What would make you leave a {job_title} position?",
               "Should show thoughtfulness about career decisions and commitment",
               ["Be honest but diplomatic", "Focus on growth opportunities", "Avoid negative comments"],
               ["retention", "career development", "job satisfaction"]),
            _q("How do you measure success in a {job_title} role?",
               "Should show understanding of role metrics and personal values",
               ["Mention both personal and professional metrics", "Connect to business impact", "Be specific"],
               ["success metrics", "achievement", "values"]),
            _q("What kind of work environment do you thrive in as a {job_title}?",
               "Should show self-awareness and cultural fit assessment",
               ["Be honest about preferences", "Connect to company culture", "Show adaptability"],
               ["work environment", "cultural fit", "preferences"]),
            _q("How would you contribute to building the culture of our {job_title} team?",
               "Should show concrete contributions to team culture and inclusion",
               ["Give examples from past teams", "Mention inclusion", "Keep it practical"],
               ["culture", "inclusion", "team building"]),
            _q("What compensation and growth expectations do you have for this {job_title} role?",
               "Should show market awareness and a focus on total opportunity",
               ["Research market ranges", "Mention growth and learning", "Stay flexible"],
               ["compensation", "expectations", "negotiation"]),
        ],
    },
}

DEFAULT_CATEGORY = 'behavioral'
DEFAULT_DIFFICULTY = 'beginner'


def get_pool(category: str, difficulty: str) -> list:
    """Templates for (category, difficulty); unknown values fall back to behavioral/beginner."""
    category_pool = FALLBACK_POOLS.get(category) or FALLBACK_POOLS[DEFAULT_CATEGORY]
    return category_pool.get(difficulty) or category_pool[DEFAULT_DIFFICULTY]


def _render(template: dict, job_title: str) -> dict:
    return {
        'question': template['question'].format(job_title=job_title),
        'expectedAnswer': template['expectedAnswer'].format(job_title=job_title),
        'tips': [t.format(job_title=job_title) for t in template['tips']],
        'keywords': list(template['keywords']),
    }


def synthesize_fallback_questions(job_title: str, category: str, difficulty: str, count: int) -> list:
    """Return exactly `count` questions built from the fallback pool."""
    pool = get_pool(category, difficulty)
    title_keyword = (job_title or '').strip().lower()
    logger.info("Generating %d fallback questions for %s - %s - %s", max(count, 0), job_title, category, difficulty)

    questions = []
    for i in range(max(count, 0)):
        base = _render(pool[i % len(pool)], job_title)
        cycle = i // len(pool)
        if cycle > 0:
            base['question'] = f"{base['question']} (Scenario {cycle + 1})"
        keywords = base['keywords'] + [k for k in (title_keyword, difficulty) if k]
        base['keywords'] = keywords
        questions.append(base)
    return questions
