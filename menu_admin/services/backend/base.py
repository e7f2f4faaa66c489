"""
Backend Service Abstract Base Class

Defines the interface contract for every backend-as-a-service implementation.
InMemoryBackend, SupabaseBackend and SqlBackend must implement these methods.

The interface mirrors the small subset of the hosted backend the dashboard
needs:
    - Row-level CRUD on named tables with equality filters
    - Exact row counts
    - Password sign-in, token lookup and sign-out
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


Row = dict[str, Any]


# =============================================================================
# ERRORS
# =============================================================================

class BackendError(Exception):
    """
    Raised when the backend rejects or fails a request.

    Attributes:
        message: Human readable description
        code: Backend error code (e.g. PostgREST "PGRST116")
        status_code: HTTP status reported by the backend, if any
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class RecordNotFoundError(BackendError):
    """The requested row does not exist."""

    def __init__(self, message: str = "Record not found", code: str = "PGRST116"):
        super().__init__(message, code=code, status_code=404)


class AuthenticationError(BackendError):
    """Invalid credentials or an expired/unknown access token."""

    def __init__(self, message: str = "Invalid credentials", code: Optional[str] = None):
        super().__init__(message, code=code, status_code=401)


# =============================================================================
# AUTH RESULTS
# =============================================================================

@dataclass
class AuthUser:
    """Authenticated backend user."""
    id: str
    email: str
    role: str = "authenticated"


@dataclass
class AuthSession:
    """
    Result of a successful sign-in.

    Attributes:
        access_token: Bearer token for subsequent requests
        token_type: Always "bearer"
        expires_in: Token lifetime in seconds
        user: The signed-in user
    """
    access_token: str
    user: AuthUser
    token_type: str = "bearer"
    expires_in: int = 3600
    refresh_token: Optional[str] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "user": {
                "id": self.user.id,
                "email": self.user.email,
                "role": self.user.role,
            },
        }


def new_row_id() -> str:
    """Generate a client-side primary key."""
    return str(uuid.uuid4())


class BaseBackend(ABC):
    """
    Abstract base class for backend services.

    Example:
        >>> backend = get_backend()
        >>> rows = await backend.select(
        ...     "produtos", order_by="created_at", descending=True
        ... )
        >>> await backend.update("produtos", rows[0]["id"], {"estoque": 3})
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the backend provider.

        Returns:
            str: Provider name (e.g., "memory", "supabase", "sql")
        """
        pass

    # ==========================================================================
    # TABLE ACCESS
    # ==========================================================================

    @abstractmethod
    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        """
        Fetch rows from a table.

        Args:
            table: Table name
            columns: Comma-separated column list, "*" for all
            filters: Column -> value equality filters
            order_by: Column to sort by
            descending: Sort direction
            limit: Maximum number of rows

        Returns:
            list[dict]: Matching rows
        """
        pass

    async def select_one(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Optional[dict[str, Any]] = None,
    ) -> Row:
        """
        Fetch exactly one row.

        Raises:
            RecordNotFoundError: If no row matches
        """
        rows = await self.select(table, columns=columns, filters=filters, limit=1)
        if not rows:
            raise RecordNotFoundError(f"No rows returned from {table}")
        return rows[0]

    @abstractmethod
    async def count(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
    ) -> int:
        """Return the exact number of matching rows."""
        pass

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        """
        Insert a row and return it as stored.

        A UUID primary key is generated when the row has no "id".
        """
        pass

    @abstractmethod
    async def update(self, table: str, row_id: str, values: Row) -> Row:
        """
        Update the row with the given id and return it as stored.

        Raises:
            RecordNotFoundError: If the id does not exist
        """
        pass

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> None:
        """Delete the row with the given id. Missing ids are not an error."""
        pass

    # ==========================================================================
    # AUTHENTICATION
    # ==========================================================================

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        pass

    @abstractmethod
    async def get_user(self, access_token: str) -> AuthUser:
        """
        Resolve an access token to its user.

        Raises:
            AuthenticationError: If the token is unknown or expired
        """
        pass

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """Invalidate an access token."""
        pass

    # ==========================================================================
    # LIFECYCLE
    # ==========================================================================

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the backend.

        Returns:
            bool: True if the backend is operational
        """
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        return None
