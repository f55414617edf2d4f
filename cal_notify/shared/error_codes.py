"""Error codes returned to the web client by auth endpoints"""

import enum


class ErrorCode(str, enum.Enum):
    IncorrectPassword = "incorrect-password"
    UserMissingPassword = "missing-password"
    TwoFactorAlreadyEnabled = "two-factor-already-enabled"
    ThirdPartyIdentityProviderEnabled = "third-party-identity-provider-enabled"
    InternalServerError = "internal-server-error"
