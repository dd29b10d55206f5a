"""
System prompt composition.

Builds the interviewer persona prompt from the session's documents. The
prompt is never persisted; it is recomposed for every model call.
"""

from mock_interviewer.orchestrator.schemas import SessionDocuments

PERSONA = (
    "You are a professional interviewer. You are conducting a simulated job "
    "interview with a candidate."
)

JD_SECTION = "Below is the position description for this interview:\n{jd}"

JD_FALLBACK = (
    "Note: no position description was provided. Act as the interviewer for "
    "the role that best fits the experience described in the candidate's CV."
)

CV_SECTION = "Below is the candidate's CV:\n{cv}"

QUESTIONS_SECTION = (
    "Below is a suggested question list for this interview. You may use these "
    "questions, reorder them or deviate from them when the conversation calls "
    "for it:\n{questions}"
)

QUESTIONS_FALLBACK = (
    "Note: no question list was provided. Devise your own technical and "
    "behavioral questions based on the candidate's CV and the general "
    "expectations of the field."
)

BEHAVIOR_POLICY = """Your task:
1. Play the interviewer and ask questions that fit the candidate's background and the role.
2. Ask one question at a time and wait for the candidate's answer before continuing.
3. Probe deeper with follow-up questions based on the candidate's answers.
4. Remain professional and serious, but constructive.
5. Open the interview with a greeting and a short introduction of how this session will run."""


def compose_system_prompt(
    cv_text: str,
    jd_text: str | None = None,
    questions_text: str | None = None,
) -> str:
    """
    Compose the interviewer system prompt.

    A pure function of its inputs: the same documents always produce the
    same prompt. Absent documents are replaced by fallback guidance rather
    than left out.

    Args:
        cv_text: Candidate CV content (mandatory).
        jd_text: Job description content, or None.
        questions_text: Suggested question list content, or None.

    Returns:
        The composed system prompt.
    """
    sections = [PERSONA]

    if jd_text is not None:
        sections.append(JD_SECTION.format(jd=jd_text))
    else:
        sections.append(JD_FALLBACK)

    sections.append(CV_SECTION.format(cv=cv_text))

    if questions_text is not None:
        sections.append(QUESTIONS_SECTION.format(questions=questions_text))
    else:
        sections.append(QUESTIONS_FALLBACK)

    sections.append(BEHAVIOR_POLICY)
    return "\n\n".join(sections)


class PromptComposer:
    """Builds the system prompt for a session from its documents."""

    def compose(self, documents: SessionDocuments) -> str:
        """
        Compose the system prompt for a session.

        Args:
            documents: The session's cv and optional jd and questions.

        Returns:
            The composed system prompt.
        """
        return compose_system_prompt(
            cv_text=documents.cv.content,
            jd_text=documents.jd.content if documents.jd else None,
            questions_text=documents.questions.content if documents.questions else None,
        )
