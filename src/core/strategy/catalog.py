"""Static coaching content used by the branching strategy selector.

Everything here is plain data: keyword taxonomies for subject domains and
age bands, example templates (``{subject}`` is filled with the educator's
subject), feedback phrasing per age band, and scaffolding profiles.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Taxonomies
# ---------------------------------------------------------------------------

SUBJECT_DOMAINS: dict[str, tuple[str, ...]] = {
    "stem": (
        "stem", "science", "biology", "chemistry", "physics", "math", "algebra",
        "geometry", "calculus", "statistics", "engineering", "technology",
        "computer", "coding", "programming", "robotics", "environmental",
        "earth science", "astronomy", "ecology", "data",
    ),
    "humanities": (
        "history", "social studies", "civics", "government", "geography",
        "english", "literature", "language arts", "ela", "reading", "writing",
        "philosophy", "economics", "psychology", "sociology", "ethics",
        "spanish", "french", "world language", "religion",
    ),
    "arts": (
        "art", "arts", "music", "drama", "theater", "theatre", "dance", "design",
        "photography", "film", "media", "ceramics", "painting", "choir", "band",
    ),
}

DEFAULT_DOMAIN = "general"

COLLEGE_TERMS: tuple[str, ...] = (
    "college", "university", "undergraduate", "graduate", "masters", "phd",
    "doctoral", "postsecondary", "post-secondary", "higher ed",
)
ADULT_TERMS: tuple[str, ...] = (
    "adult", "professional", "workforce", "continuing education", "18+", "19+", "20+",
)
HIGH_TERMS: tuple[str, ...] = ("high school", "secondary", "upper school", "teen")
MIDDLE_TERMS: tuple[str, ...] = ("middle school", "middle", "junior high", "tween")
ELEMENTARY_TERMS: tuple[str, ...] = (
    "elementary", "primary", "kindergarten", "early childhood", "preschool", "k-2", "k-5",
)

DEFAULT_AGE_BAND = "middle"

# ---------------------------------------------------------------------------
# Example phrases per domain and step
# ---------------------------------------------------------------------------

EXAMPLES: dict[str, dict[str, tuple[str, ...]]] = {
    "stem": {
        "bigIdea": (
            "Systems in {subject} are connected: changing one part changes the whole",
            "Patterns in {subject} help us predict the future",
            "Evidence in {subject} changes what we believe",
            "Design in {subject} is a cycle of testing and improving",
        ),
        "essentialQuestion": (
            "How might {subject} help us solve a problem in our own neighborhood?",
            "Why do small changes in a system sometimes cause big effects?",
            "To what extent can we trust a model to predict the real world?",
            "What makes one solution better than another?",
        ),
        "challenge": (
            "Design a prototype that solves a real problem for our school community",
            "Build a data dashboard that helps the city council make a decision",
            "Create a field guide that teaches younger students about local ecosystems",
            "Propose an energy-saving plan to the school board",
        ),
    },
    "humanities": {
        "bigIdea": (
            "Power shapes whose stories get told in {subject}",
            "Identity is formed through the communities we belong to",
            "Change happens when ordinary people take action",
            "Every source in {subject} carries a point of view",
        ),
        "essentialQuestion": (
            "Whose voices are missing from the story we usually tell?",
            "How do the decisions of the past shape our community today?",
            "What does it take for ordinary people to change history?",
            "How can stories build empathy across differences?",
        ),
        "challenge": (
            "Curate a museum exhibit for families about an untold local story",
            "Produce a podcast series that interviews community elders",
            "Write and present a policy proposal to the city council",
            "Create an oral history archive for the local library",
        ),
    },
    "arts": {
        "bigIdea": (
            "Art in {subject} gives form to feelings that are hard to say",
            "Creative work is a conversation with an audience",
            "Constraints can spark creativity",
            "Culture lives in the things we make",
        ),
        "essentialQuestion": (
            "How can art change the way a community sees itself?",
            "What makes a piece of {subject} memorable?",
            "How do artists turn personal experience into something universal?",
            "Why do some creative traditions last for centuries?",
        ),
        "challenge": (
            "Design a public mural proposal for the neighborhood association",
            "Produce a performance that raises awareness for a local cause",
            "Curate a gallery show for families that tells our school's story",
            "Create an album of original work for younger students",
        ),
    },
    "general": {
        "bigIdea": (
            "Communities thrive when everyone contributes",
            "Sustainability means thinking about the future",
            "Innovation starts with understanding a problem",
            "Connections across {subject} reveal bigger patterns",
        ),
        "essentialQuestion": (
            "How can we make our community a better place to live?",
            "What responsibility do we have to future generations?",
            "How do we decide what problems are worth solving?",
            "Why does {subject} matter outside the classroom?",
        ),
        "challenge": (
            "Design a solution that improves daily life at our school",
            "Create a campaign for families about a cause students care about",
            "Propose a community project to local leaders",
            "Build a resource that teaches younger students something new",
        ),
    },
}

STEP_EXAMPLES: dict[str, tuple[str, ...]] = {
    "phases": (
        "Launch with a hook, investigate, create, then share with an audience",
        "Discover, define, ideate, prototype, test",
        "Research the problem, interview stakeholders, build, then present",
    ),
    "activities": (
        "Start with a site visit, then run small-group investigations each week",
        "Interview an expert, draft in teams, then hold a peer critique",
        "Collect data in the field, analyze it in class, then build a model",
    ),
    "resources": (
        "A local {subject} expert as a guest speaker",
        "Primary sources from the town library archive",
        "Free data sets and simulation software",
    ),
    "milestones": (
        "Proposal approved, first draft reviewed, final showcase",
        "Research checkpoint in week 2, prototype demo in week 4, exhibition at the end",
        "Interview notes, storyboard, published product",
    ),
    "artifacts": (
        "A public presentation with a working prototype",
        "A podcast episode and written reflection",
        "A portfolio documenting each design iteration",
    ),
    "assessment": (
        "A rubric co-created with students plus peer review",
        "Self-assessment checklist and expert feedback",
        "Reflection journal scored against four criteria",
    ),
}

# ---------------------------------------------------------------------------
# Copy and feedback
# ---------------------------------------------------------------------------

COPY_TEMPLATES: dict[str, str] = {
    "explain": (
        "Good question. For {step_label} in {subject}, think about {focus}. "
        "Here are a few examples to react to."
    ),
    "what_if": (
        "Let's follow that thread. What if your {step_label} in {subject} "
        "focused on {focus}? Here are some directions to explore."
    ),
    "affirm": (
        "That works as your {step_label}. If you'd like, compare it with these "
        "before we lock it in."
    ),
    "default": "Here are some ideas for your {step_label} in {subject}.",
}

STEP_FOCUS: dict[str, str] = {
    "bigIdea": "the lasting concept students should carry with them",
    "essentialQuestion": "an open question with no single right answer",
    "challenge": "a real task for a real audience",
    "phases": "how students move from curiosity to a finished product",
    "activities": "what students actually do each week",
    "resources": "the people, places, and tools students will need",
    "milestones": "the checkpoints that show progress",
    "artifacts": "what students make and share",
    "assessment": "how you and your students will recognise quality",
}

AGE_FEEDBACK: dict[str, tuple[str, str, str]] = {
    "elementary": (
        "This may be too abstract for young learners. What could they see, touch, or build?",
        "Try fewer moving parts so younger students can own each step.",
        "Concrete and hands-on: a great fit for this age group.",
    ),
    "middle": (
        "Middle schoolers can handle ideas, but anchor this one in something they care about.",
        "Consider splitting this into smaller choices students can make themselves.",
        "Meaningful choice and a real audience: a strong fit for middle school.",
    ),
    "high": (
        "Abstract is fine at this level, but show how students will see it in action.",
        "Ambitious is good. Add checkpoints so the complexity stays manageable.",
        "Professional practices and real stakes: a strong fit for high school.",
    ),
    "college": (
        "Consider how students will apply this theory to concrete outcomes.",
        "Make sure the scope fits the length of the course.",
        "Strong theoretical grounding with room for original contribution.",
    ),
    "adult": (
        "Connect this idea to learners' own professional context.",
        "Respect limited time: trim to the pieces with direct workplace value.",
        "Practical and self-directed: a good fit for adult learners.",
    ),
}

GUIDANCE_STYLES: dict[str, str] = {
    "elementary": "directive",
    "middle": "balanced",
    "high": "balanced",
    "college": "socratic",
    "adult": "socratic",
}

# ---------------------------------------------------------------------------
# Scaffolding
# ---------------------------------------------------------------------------

# label -> (guidance_level, example_count, pacing, offer_unsolicited_examples)
SCAFFOLDING: dict[str, tuple[str, int, str, bool]] = {
    "novice": ("high", 3, "step-by-step", True),
    "intermediate": ("moderate", 2, "steady", False),
    "expert": ("light", 1, "brisk", False),
}

DEFAULT_EXPERIENCE = "novice"

EXPERIENCE_ALIASES: dict[str, str] = {
    "new": "novice",
    "beginner": "novice",
    "first time": "novice",
    "some": "intermediate",
    "experienced": "expert",
    "advanced": "expert",
    "veteran": "expert",
}

CROSS_SUBJECT_TEMPLATES: tuple[str, ...] = (
    "How might {secondary} help students see {primary} from a new angle?",
    "Where do the methods of {primary} and {secondary} overlap in the real world?",
    "What could students create that needs both {primary} and {secondary} to succeed?",
)
