"""UninstallResult model for tallying the outcome of an uninstall run."""

from pydantic import BaseModel, ConfigDict, Field, computed_field


class UninstallResult(BaseModel):
    """Aggregated outcome of every operation performed by one uninstall."""

    success_count: int = Field(
        default=0,
        description="Operations that completed, including targets already gone"
    )
    failure_count: int = Field(
        default=0,
        description="Operations that failed"
    )
    errors: list[str] = Field(
        default_factory=list,
        description="One message per failed operation"
    )

    model_config = ConfigDict(validate_assignment=True)

    @computed_field
    @property
    def is_success(self) -> bool:
        """True when no operation failed."""
        return self.failure_count == 0

    def record_success(self) -> None:
        """Count one successful operation."""
        self.success_count += 1

    def record_failure(self, message: str) -> None:
        """Count one failed operation and keep its message."""
        self.failure_count += 1
        self.errors.append(message)

    def get_summary(self) -> dict:
        """Get a summary of the uninstall outcome."""
        return {
            "success": self.is_success,
            "succeeded": self.success_count,
            "failed": self.failure_count,
            "errors": list(self.errors),
        }

    def get_exit_code(self) -> int:
        """Determine the process exit code a caller should use."""
        return 0 if self.is_success else 1
