"""
Domain exceptions raised by the service layer and translated by the routers
"""


class UploadValidationError(ValueError):
    """Uploaded file is not an acceptable image"""


class InvalidStatusTransition(Exception):
    """Terminal write attempted on an analysis that is no longer analyzing"""

    def __init__(self, analysis_id: str, current_status: str):
        self.analysis_id = analysis_id
        self.current_status = current_status
        super().__init__(
            f"Analysis {analysis_id} is '{current_status}', only 'analyzing' records can be finalized"
        )


class InvalidViewTransition(Exception):
    """UI state machine received an event that is not valid in its current state"""


class AccountError(ValueError):
    """Sign-up rejected (duplicate email, weak password)"""


class NoAnalysisReceived(RuntimeError):
    """Vision model returned an empty completion"""
