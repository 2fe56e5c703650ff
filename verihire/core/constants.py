"""Application constants.

Résumé section keywords, title ladders, scoring weights and keyword sets,
credential tiers and request lifetimes.
"""

# ---------------------------------------------------------------------------
# Résumé section headings
# ---------------------------------------------------------------------------
WORK_SECTION_KEYWORDS: tuple[str, ...] = (
    "experience",
    "employment",
    "work history",
    "professional experience",
    "career",
    "work",
    "professional",
    "jobs",
    "positions",
)

EDUCATION_SECTION_KEYWORDS: tuple[str, ...] = (
    "education",
    "academic",
    "university",
    "college",
    "degree",
    "school",
    "qualifications",
)

SKILLS_SECTION_KEYWORDS: tuple[str, ...] = (
    "skills",
    "technical skills",
    "core competencies",
    "technologies",
    "tech stack",
)

# A heading line is short: anything longer is content that happens to
# mention a keyword.
MAX_HEADING_WORDS: int = 4

# ---------------------------------------------------------------------------
# Work history matchers
# ---------------------------------------------------------------------------
KNOWN_TITLES: tuple[str, ...] = (
    "Software Engineer", "Senior Software Engineer", "Lead Developer",
    "Product Manager", "Data Scientist", "DevOps Engineer",
    "Full Stack Developer", "Backend Developer", "Frontend Developer",
    "Engineering Manager", "Tech Lead", "Principal Engineer",
    "Staff Engineer", "Solution Architect", "System Architect",
    "Director of Engineering", "VP of Engineering",
    "Chief Technology Officer", "CTO", "Senior Developer",
    "Junior Developer", "Software Developer", "Web Developer",
    "Mobile Developer", "QA Engineer", "Test Engineer",
    "Security Engineer", "Site Reliability Engineer", "Platform Engineer",
    "Machine Learning Engineer", "AI Engineer", "Data Engineer",
    "Business Analyst", "Systems Analyst", "Technical Writer",
    "Scrum Master", "Product Owner", "Project Manager",
)

GENERIC_TITLE_PREFIXES: tuple[str, ...] = (
    "Manager", "Director", "Senior Manager", "Associate Manager",
    "Team Lead", "Lead", "Senior", "Principal", "Staff", "Head of", "VP",
    "Vice President", "Chief", "President", "Coordinator", "Associate",
    "Assistant", "Specialist", "Consultant", "Advisor", "Analyst",
    "Officer", "Executive", "Representative", "Administrator",
    "Supervisor", "Intern", "Junior",
)

TITLE_SUFFIXES: tuple[str, ...] = (
    "Engineer", "Developer", "Manager", "Director", "Lead", "Senior",
    "Principal", "Staff", "Analyst", "Designer", "Consultant",
    "Specialist", "Coordinator", "Associate", "Assistant", "Officer",
    "Executive", "Architect", "Scientist", "Intern",
)

COMPANY_SUFFIXES: tuple[str, ...] = (
    "Inc", "Inc.", "Corp", "Corp.", "Corporation", "LLC", "Ltd", "Ltd.",
    "Co", "Co.", "GmbH", "Group", "Labs", "Technologies", "Systems",
    "Solutions", "Partners",
)

PRESENT_MARKERS: tuple[str, ...] = ("present", "current", "now")

# Description continuations must carry some content
MIN_DESCRIPTION_LENGTH: int = 20

# ---------------------------------------------------------------------------
# Placeholders
# ---------------------------------------------------------------------------
PLACEHOLDER_COMPANY: str = "Company Name"
PLACEHOLDER_POSITION: str = "Job Title"
PLACEHOLDER_DESCRIPTION: str = "Add your job responsibilities and achievements here"
DEFAULT_DEGREE: str = "Bachelor's Degree"
DEFAULT_FIELD: str = "Computer Science"
DEFAULT_GRADUATION_YEARS_BACK: int = 4

# ---------------------------------------------------------------------------
# Verification requests
# ---------------------------------------------------------------------------
REQUEST_TOKEN_TYPE: str = "employment_verification"
REQUEST_TOKEN_ALGORITHM: str = "HS256"
VERIFY_PATH: str = "/verify-employment"

# ---------------------------------------------------------------------------
# Trust score
# ---------------------------------------------------------------------------
SCORE_WEIGHTS: dict[str, float] = {
    "employment_verification_rate": 0.40,
    "career_progression": 0.20,
    "skill_consistency": 0.15,
    "timeline_consistency": 0.15,
    "verification_count_bonus": 0.10,
}

NO_REQUESTS_BASELINE_SCORE: int = 30

SENIORITY_LADDER: tuple[str, ...] = (
    "intern",
    "junior",
    "associate",
    "senior",
    "lead",
    "principal",
    "manager",
    "director",
    "vp",
)

CAREER_BASE_SCORE: int = 50
CAREER_SINGLE_JOB_SCORE: int = 70
CAREER_PROMOTION_BONUS: int = 15

TECH_SKILL_KEYWORDS: tuple[str, ...] = (
    "javascript", "typescript", "python", "react", "node", "sql", "aws",
    "docker", "kubernetes", "java",
)
TECH_ROLE_KEYWORDS: tuple[str, ...] = (
    "engineer", "developer", "architect", "technical",
)
SKILL_BASE_SCORE: int = 60
SKILL_NO_SKILLS_SCORE: int = 50
SKILL_MATCH_BONUS: int = 30

TIMELINE_EMPTY_SCORE: int = 80
TIMELINE_SINGLE_JOB_SCORE: int = 90
TIMELINE_BASE_SCORE: int = 80
TIMELINE_TRANSITION_BONUS: int = 5

VERIFICATION_COUNT_STEP: int = 20

REASONING_TEMPERATURE: float = 0.3
REASONING_MAX_TOKENS: int = 1500

# ---------------------------------------------------------------------------
# Credential tiers (minimum score, label)
# ---------------------------------------------------------------------------
TRUST_LEVELS: tuple[tuple[int, str], ...] = (
    (90, "Platinum"),
    (75, "Gold"),
    (60, "Silver"),
    (40, "Bronze"),
    (0, "Unverified"),
)
