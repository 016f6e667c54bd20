"""Exceptions raised by the subtitle processing service."""


class SubtitleProcessingError(Exception):
    """Base class for subtitle processing errors."""


class SubjectNotFoundError(SubtitleProcessingError):
    def __init__(self, subject_id: str) -> None:
        super().__init__(f"Training subject {subject_id} not found")
        self.subject_id = subject_id


class ActiveJobExistsError(SubtitleProcessingError):
    def __init__(self, subject_id: str, job_id: str) -> None:
        super().__init__(f"A processing job is already active for this subject. Job ID: {job_id}")
        self.subject_id = subject_id
        self.job_id = job_id


class InvalidLanguageError(SubtitleProcessingError):
    def __init__(self, invalid_languages: list[str]) -> None:
        super().__init__(f"Unsupported languages: {', '.join(invalid_languages)}")
        self.invalid_languages = invalid_languages


class JobNotFoundError(SubtitleProcessingError):
    """The job row disappeared, e.g. it was discarded while a run was in flight."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Subtitle processing job {job_id} not found")
        self.job_id = job_id
