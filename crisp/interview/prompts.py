"""
Interview prompt templates and generation.

This module contains all the prompt templates used throughout the interview engine,
keeping them separate from the business logic for easier maintenance and editing.
"""

from typing import Dict, Any, List

from .models import CandidateDocument, Question, Answer, InterviewSession


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def resume_analysis(resume_text: str) -> str:
        """Prompt for a free-text analysis used to personalise questions."""
        return f"""
Analyze this resume and extract key information for generating personalized interview questions.

Resume Text: {resume_text}

Please provide a structured analysis including:
1. TECHNICAL SKILLS: List all programming languages, frameworks, tools mentioned
2. EXPERIENCE LEVEL: Estimate years of experience and seniority level
3. PROJECTS: Key projects or achievements mentioned
4. EDUCATION: Degree and relevant coursework
5. SPECIALIZATIONS: Areas of focus (frontend, backend, full-stack, etc.)
6. CERTIFICATIONS: Any certifications or training mentioned

Format as a concise summary for question generation.
        """.strip()

    @staticmethod
    def question_generation(candidate_profile: str, resume_analysis: str, resume_text: str) -> str:
        """Prompt asking for exactly six questions as strict JSON."""
        return f"""
Based on the following detailed resume analysis, generate 6 personalized interview questions for a software developer position.

CANDIDATE PROFILE:
{candidate_profile}

RESUME ANALYSIS:
{resume_analysis}

FULL RESUME TEXT:
{resume_text}

INSTRUCTIONS:
1. Generate questions that are SPECIFIC to this candidate's experience and skills
2. Ask about technologies they've mentioned in their resume
3. Create questions that test both theoretical knowledge and practical experience
4. Ensure questions are relevant to their career level and background

Generate exactly 6 questions with this distribution:
- 2 Easy questions (30-60 seconds): Basic concepts related to their tech stack
- 2 Medium questions (90-120 seconds): Intermediate concepts and best practices
- 2 Hard questions (150-180 seconds): Advanced scenarios and problem-solving

Return ONLY valid JSON format (no markdown, no explanations):
[
  {{"id": "q1", "text": "Specific question based on their resume", "difficulty": "easy", "timeLimit": 45, "category": "Technology from their resume"}},
  {{"id": "q2", "text": "Another specific question", "difficulty": "easy", "timeLimit": 60, "category": "Another relevant technology"}},
  {{"id": "q3", "text": "Medium difficulty question", "difficulty": "medium", "timeLimit": 90, "category": "Best practices"}},
  {{"id": "q4", "text": "Another medium question", "difficulty": "medium", "timeLimit": 120, "category": "Architecture"}},
  {{"id": "q5", "text": "Hard scenario-based question", "difficulty": "hard", "timeLimit": 150, "category": "Advanced concepts"}},
  {{"id": "q6", "text": "Another hard question", "difficulty": "hard", "timeLimit": 180, "category": "Problem solving"}}
]
        """.strip()

    @staticmethod
    def answer_evaluation(question: Question, answer: Answer) -> str:
        """Rubric prompt for scoring a single answer on a 1-10 scale."""
        return f"""
You are an expert technical interviewer evaluating a candidate's response. Provide a thorough and accurate assessment.

QUESTION DETAILS:
- Question: {question.text}
- Difficulty: {question.difficulty.value}
- Category: {question.category}
- Time Limit: {question.time_limit} seconds
- Time Taken: {answer.time_spent} seconds

CANDIDATE'S ANSWER:
"{answer.text}"

EVALUATION CRITERIA:
For {question.difficulty.value} difficulty questions, use these scoring standards:

EASY QUESTIONS (1-10 scale):
- 9-10: Excellent understanding, clear explanation, mentions best practices
- 7-8: Good understanding, mostly correct, some minor gaps
- 5-6: Basic understanding, partially correct, some confusion
- 3-4: Limited understanding, significant errors
- 1-2: Poor understanding, mostly incorrect

MEDIUM QUESTIONS (1-10 scale):
- 9-10: Advanced understanding, excellent explanation, considers edge cases
- 7-8: Good understanding, solid explanation, minor gaps
- 5-6: Adequate understanding, some good points, some errors
- 3-4: Basic understanding, significant gaps or errors
- 1-2: Poor understanding, major errors

HARD QUESTIONS (1-10 scale):
- 9-10: Expert level, comprehensive answer, shows deep knowledge
- 7-8: Advanced level, good understanding, minor gaps
- 5-6: Intermediate level, adequate but incomplete
- 3-4: Basic level, significant gaps for this difficulty
- 1-2: Inadequate for this difficulty level

SCORING FACTORS:
- Technical Accuracy (40%): Is the technical content correct?
- Completeness (25%): Does it address all parts of the question?
- Clarity (20%): Is the explanation clear and well-structured?
- Relevance (15%): Does it directly answer the question asked?

SPECIAL CONSIDERATIONS:
- If answer is too short (< 20 words), deduct 2-3 points
- If answer is completely off-topic, score 1-2
- If answer shows no understanding, score 1-3
- If answer is partially correct but incomplete, score 4-6
- If answer is correct but lacks depth for the difficulty, score 6-7

Provide detailed feedback explaining:
1. What the candidate got right
2. What they missed or got wrong
3. Specific suggestions for improvement
4. Overall assessment of their technical knowledge level

Return ONLY valid JSON (no markdown, no explanations):
{{
  "score": <number between 1-10>,
  "feedback": "<detailed feedback explaining the score and providing constructive criticism>"
}}
        """.strip()

    @staticmethod
    def final_evaluation(qa_pairs: str) -> str:
        """Prompt for the overall 0-100 assessment of a finished session."""
        return f"""
You are an expert technical interviewer. Review the following interview Q&A and scores, and provide a tailored evaluation for the candidate:

{qa_pairs}

Please provide:
1. Overall score (0-100)
2. Brief summary (2-3 sentences) that highlights specific strengths and weaknesses based on the answers
3. Top 3 strengths (tailored to what the candidate did well)
4. Top 3 areas for improvement (tailored to what the candidate struggled with or missed)
5. If any answer scored 0, mention that the candidate gave irrelevant or random input and recommend focusing on meaningful, technical responses in future interviews

Return ONLY valid JSON (no markdown, no explanations):
{{
  "totalScore": <number 0-100>,
  "summary": "<string>",
  "strengths": ["<string>", "<string>", "<string>"],
  "weaknesses": ["<string>", "<string>", "<string>"]
}}
        """.strip()

    @staticmethod
    def fallback_questions() -> List[Dict[str, Any]]:
        """Predefined question set used when generation fails."""
        return [
            {"id": "q1", "text": "What is the difference between props and state in React?",
             "difficulty": "easy", "time_limit": 30, "category": "React"},
            {"id": "q2", "text": "Explain the concept of closures in JavaScript.",
             "difficulty": "easy", "time_limit": 30, "category": "JavaScript"},
            {"id": "q3", "text": "How would you optimize a React component that re-renders frequently?",
             "difficulty": "medium", "time_limit": 90, "category": "React"},
            {"id": "q4", "text": "What are the differences between callbacks, promises, and async/await?",
             "difficulty": "medium", "time_limit": 90, "category": "JavaScript"},
            {"id": "q5", "text": "Design a scalable architecture for a real-time chat application using Node.js and React.",
             "difficulty": "hard", "time_limit": 180, "category": "Architecture"},
            {"id": "q6", "text": "How would you implement server-side rendering (SSR) in a React application and what are the trade-offs?",
             "difficulty": "hard", "time_limit": 180, "category": "React"},
        ]

    @staticmethod
    def fallback_messages() -> Dict[str, Any]:
        """Fallback text for when LLM generation fails."""
        return {
            "basic_analysis": "Basic resume analysis: {name} with experience in software development.",
            "feedback": {
                "gibberish": (
                    "Your answer was not relevant or was detected as random/absurd input. "
                    "Please provide a meaningful, technical response to the question. Review the "
                    "question carefully and avoid typing random letters or gibberish."
                ),
                "excellent": (
                    "Excellent answer! You demonstrated strong understanding of the {difficulty} "
                    "level concept. Keep up the great work! For further improvement, try to relate "
                    "your answer to real-world scenarios or recent technologies you have used."
                ),
                "good": (
                    "Good answer with solid understanding. To improve, provide more specific examples "
                    "from your experience and elaborate on best practices relevant to the question."
                ),
                "fair": (
                    "Your answer shows some understanding but could be improved. Focus on being more "
                    "specific, use technical terminology, and provide concrete examples from your "
                    "work or studies."
                ),
                "poor": (
                    "Your answer needs improvement. Review the fundamentals for this topic and try to "
                    "structure your response more clearly. Consider breaking down your answer into "
                    "steps or key points for better clarity."
                ),
            },
            "final_summary": (
                "Interview completed. AI evaluation was unavailable, so this score is the average "
                "of the per-answer scores and the feedback below is generic."
            ),
            "strengths": ["Good communication", "Solid foundation", "Problem-solving approach"],
            "weaknesses": ["Could improve on advanced concepts", "More practice needed", "Time management"],
        }


class PromptFormatter:
    """Helper class for formatting prompt inputs."""

    @staticmethod
    def format_candidate_profile(document: CandidateDocument) -> str:
        """Contact block shown at the top of the question prompt."""
        return "\n".join([
            f"- Name: {document.name or 'Not provided'}",
            f"- Email: {document.email or 'Not provided'}",
            f"- Phone: {document.phone or 'Not provided'}",
        ])

    @staticmethod
    def format_qa_pairs(session: InterviewSession) -> str:
        """Q/A/score transcript of a session, aligned by question id."""
        blocks = []
        for index, question in enumerate(session.questions):
            answer = session.find_answer(question.id)
            answer_text = answer.text if answer and answer.text else "No answer"
            score = answer.score if answer and answer.score is not None else "N/A"
            blocks.append(
                f"Q{index + 1} ({question.difficulty.value}): {question.text}\n"
                f"A{index + 1}: {answer_text}\n"
                f"Score: {score}/10\n"
            )
        return "\n".join(blocks)
