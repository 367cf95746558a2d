"""
Custom exceptions for LocalBiz
"""


class LocalBizException(Exception):
    """Base exception for all LocalBiz errors"""
    status_code = 500

    def __init__(self, message: str, code: str = "LOCALBIZ_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def extra(self) -> dict:
        """Additional fields merged into the error response body."""
        return {}


class ValidationException(LocalBizException):
    """Exception raised for malformed or missing input"""
    status_code = 400

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR"
        )

    def extra(self) -> dict:
        return {"field": self.field} if self.field else {}


class InsufficientStockException(LocalBizException):
    """Exception raised when an order line asks for more than is in stock"""
    status_code = 400

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            message=f"Insufficient stock for {product_name}. Available: {available}",
            code="INSUFFICIENT_STOCK"
        )

    def extra(self) -> dict:
        return {"product": self.product_name, "available": self.available}


class AuthenticationException(LocalBizException):
    """Exception raised for missing or invalid credentials"""
    status_code = 401

    def __init__(self, message: str = "Not authorized. Please login."):
        super().__init__(message=message, code="UNAUTHORIZED")


class LimitExceededException(LocalBizException):
    """Exception raised when a metered action is over the plan limit"""
    status_code = 403

    def __init__(self, category: str, current: int, limit: int, plan: str):
        self.category = category
        self.current = current
        self.limit = limit
        self.plan = plan
        super().__init__(
            message=f"You have reached your monthly {category} limit of {limit}. Please upgrade your plan.",
            code="LIMIT_EXCEEDED"
        )

    def extra(self) -> dict:
        return {
            "limitExceeded": True,
            "currentPlan": self.plan,
            "usage": {"current": self.current, "limit": self.limit},
        }


class NotFoundException(LocalBizException):
    """Exception raised when an entity is absent or not owned by the caller's shop"""
    status_code = 404

    def __init__(self, entity: str, identifier=None):
        self.entity = entity
        self.identifier = identifier
        message = f"{entity} not found"
        if identifier is not None:
            message = f"{entity} not found: {identifier}"
        super().__init__(message=message, code="NOT_FOUND")


class ConflictException(LocalBizException):
    """Exception raised on uniqueness violations"""
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFLICT")


class ExternalServiceException(LocalBizException):
    """Exception raised when a WhatsApp, AI, email or payment provider fails"""
    status_code = 502

    def __init__(self, provider: str, message: str, configured: bool = True):
        self.provider = provider
        self.configured = configured
        if not configured:
            self.status_code = 503
        super().__init__(
            message=f"{provider} error: {message}",
            code="EXTERNAL_SERVICE_ERROR"
        )
