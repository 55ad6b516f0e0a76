# =============================================================================
# Account Model
# =============================================================================
# Represents a sending account: who we are and which SMTP server we talk to.
#
# IMPORTANT: Passwords are NOT stored here. They are retrieved from the system
# keyring at send time using the 'keyring' library. This keeps credentials
# out of config files.
# =============================================================================

from dataclasses import dataclass
from email.utils import formataddr

# Accepted values for Account.smtp_security
SECURITY_MODES = ("starttls", "ssl")

# Accepted values for Account.auth_mechanism
AUTH_MECHANISMS = ("plain", "login", "cram-md5", "none")


@dataclass
class Account:
    """
    Represents an email account with SMTP configuration.

    Attributes:
        name: A unique identifier for this account (e.g., "personal", "work").
              Used as the key in config files and for keyring lookups.
        email: The email address used as the sender.
        display_name: The name shown in the "From" field.
                      Defaults to the email address if not specified.

        smtp_host: Hostname of the SMTP server (e.g., "smtp.gmail.com").
        smtp_port: Port for the SMTP connection. Standard ports:
                   - 587 for submission with STARTTLS (recommended)
                   - 465 for SMTP over implicit TLS
                   - 25 for relay
        smtp_security: "starttls" upgrades whenever the server offers it,
                       "ssl" connects with TLS from the first byte.

        auth_mechanism: SASL mechanism used when the server advertises AUTH
                        ("plain", "login", "cram-md5", or "none").
        username: Login name. Defaults to the email address.

    Example:
        >>> account = Account(
        ...     name="work",
        ...     email="user@example.com",
        ...     display_name="Jane Doe",
        ...     smtp_host="smtp.example.com",
        ... )
    """

    # Account identification
    name: str                           # Unique account identifier
    email: str                          # Email address
    display_name: str = ""              # Name shown in "From" field

    # SMTP configuration
    smtp_host: str = ""
    smtp_port: int = 587                # Default to submission port
    smtp_security: str = "starttls"     # "starttls" or "ssl"

    # Authentication
    auth_mechanism: str = "plain"
    username: str = ""

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.email
        if not self.username:
            self.username = self.email

    @property
    def keyring_service(self) -> str:
        """
        Returns the service name used for keyring password storage.

            keyring set streammail:work user@example.com
        """
        return f"streammail:{self.name}"

    @property
    def sender(self) -> str:
        """The From value, with display name when it differs from the address."""
        if self.display_name == self.email:
            return self.email
        return formataddr((self.display_name, self.email))

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"
