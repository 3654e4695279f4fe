"""Custom exception classes for the SII folios service.

All exceptions inherit from SiiFoliosError to allow catching all custom exceptions.

Portal step failures are not exceptions: they travel as StepOutcome values
(see ``sii_folios.models.outcomes``). Exceptions are reserved for problems
detected before the workflow starts and for configuration loading.
"""


class SiiFoliosError(Exception):
    """Base exception for all SII folios service custom exceptions."""

    pass


class InputError(SiiFoliosError):
    """Raised when request input is missing or malformed.

    Raised before any network call is attempted.

    Examples:
        - Missing folioInicial
        - RUT without check digit
        - folioFinal lower than folioInicial
    """

    pass


class ConfigurationError(SiiFoliosError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Unknown portal environment name
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class CertificateLoadError(InputError):
    """Raised when the supplied certificate cannot be staged for mutual TLS.

    Examples:
        - Certificate payload is not PEM nor PKCS#12
        - Incorrect password for the encrypted key
        - Bundle without a private key
    """

    pass
