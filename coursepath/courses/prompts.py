"""Prompts for course drafting."""

from string import Template


# (learning blocks, practice blocks) per course length
LENGTH_BLUEPRINT = {
    "short": (2, 1),
    "medium": (4, 2),
    "long": (6, 3),
}

QUESTIONS_PER_LEARNING_BLOCK = 3

COURSE_DRAFT_PROMPT = Template("""
You are an expert curriculum designer. Draft a question-driven course.

# Learner Brief
- Topic: ${topic}
- Goal: ${goal}
- Level: ${level}

# Structure
1. Exactly one "introduction" block first.
2. ${learning_blocks} "learning" blocks, each with ${questions_per_block} open questions
   that build on each other. Add a short hint for beginners.
3. ${practice_blocks} "practice" blocks, one after every two learning blocks, each with a concrete task in "content".
4. Exactly one "reflection" block last.

Difficulty for learning and practice blocks: ${difficulty}.

Return ONLY a JSON object (no markdown fences or commentary) with this structure:
{
  "title": "Course title",
  "topic": "${topic}",
  "goal": "Learner goal or null",
  "level": "${level}",
  "length": "${length}",
  "blocks": [
    {
      "block_type": "introduction | learning | practice | reflection",
      "title": "Block title",
      "content": "Block body or null",
      "difficulty": "easy | medium | hard | null",
      "questions": [{"text": "Question", "hint": "Hint or null", "expected_answer": "Reference answer or null"}]
    }
  ]
}
""")

DIFFICULTY_BY_LEVEL = {
    "beginner": "easy",
    "intermediate": "medium",
    "advanced": "hard",
}
