"""Request and response bodies for the backup API.

Request fields are typed loosely so malformed input reaches the handlers
and is answered with a 400 describing the problem.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskvault.backup.models import BackupData, RestoreSummary


class BackupRequest(BaseModel):
    collections: Any = None


class BackupResponse(BaseModel):
    success: bool = True
    data: BackupData


class RestoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    backup_data: Any = Field(default=None, alias="backupData")
    strategy: Any = None


class RestoreResponse(BaseModel):
    success: bool = True
    message: str = "Restore completed"
    summary: RestoreSummary
