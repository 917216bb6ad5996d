from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple


class EntryKind(enum.Enum):
    """OpenSSH client keywords recognized in a host block."""

    ADD_KEYS_TO_AGENT = "AddKeysToAgent"
    ADDRESS_FAMILY = "AddressFamily"
    BATCH_MODE = "BatchMode"
    BIND_ADDRESS = "BindAddress"
    BIND_INTERFACE = "BindInterface"
    CANONICAL_DOMAINS = "CanonicalDomains"
    CANONICALIZE_FALLBACK_LOCAL = "CanonicalizeFallbackLocal"
    CANONICALIZE_HOSTNAME = "CanonicalizeHostname"
    CANONICALIZE_MAX_DOTS = "CanonicalizeMaxDots"
    CANONICALIZE_PERMITTED_CNAMES = "CanonicalizePermittedCNAMEs"
    CA_SIGNATURE_ALGORITHMS = "CASignatureAlgorithms"
    CERTIFICATE_FILE = "CertificateFile"
    CHALLENGE_RESPONSE_AUTHENTICATION = "ChallengeResponseAuthentication"
    CHANNEL_TIMEOUT = "ChannelTimeout"
    CHECK_HOST_IP = "CheckHostIP"
    CIPHERS = "Ciphers"
    CLEAR_ALL_FORWARDINGS = "ClearAllForwardings"
    COMPRESSION = "Compression"
    CONNECTION_ATTEMPTS = "ConnectionAttempts"
    CONNECT_TIMEOUT = "ConnectTimeout"
    CONTROL_MASTER = "ControlMaster"
    CONTROL_PATH = "ControlPath"
    CONTROL_PERSIST = "ControlPersist"
    DYNAMIC_FORWARD = "DynamicForward"
    ENABLE_ESCAPE_COMMANDLINE = "EnableEscapeCommandline"
    ENABLE_SSH_KEYSIGN = "EnableSSHKeysign"
    ESCAPE_CHAR = "EscapeChar"
    EXIT_ON_FORWARD_FAILURE = "ExitOnForwardFailure"
    FINGERPRINT_HASH = "FingerprintHash"
    FORK_AFTER_AUTHENTICATION = "ForkAfterAuthentication"
    FORWARD_AGENT = "ForwardAgent"
    FORWARD_X11 = "ForwardX11"
    FORWARD_X11_TIMEOUT = "ForwardX11Timeout"
    FORWARD_X11_TRUSTED = "ForwardX11Trusted"
    GATEWAY_PORTS = "GatewayPorts"
    GLOBAL_KNOWN_HOSTS_FILE = "GlobalKnownHostsFile"
    GSSAPI_AUTHENTICATION = "GSSAPIAuthentication"
    GSSAPI_DELEGATE_CREDENTIALS = "GSSAPIDelegateCredentials"
    HASH_KNOWN_HOSTS = "HashKnownHosts"
    HOSTBASED_ACCEPTED_ALGORITHMS = "HostbasedAcceptedAlgorithms"
    HOSTBASED_AUTHENTICATION = "HostbasedAuthentication"
    HOSTNAME = "Hostname"
    HOST_KEY_ALGORITHMS = "HostKeyAlgorithms"
    HOST_KEY_ALIAS = "HostKeyAlias"
    IDENTITIES_ONLY = "IdentitiesOnly"
    IDENTITY_AGENT = "IdentityAgent"
    IDENTITY_FILE = "IdentityFile"
    IGNORE_UNKNOWN = "IgnoreUnknown"
    IP_QOS = "IPQoS"
    KBD_INTERACTIVE_AUTHENTICATION = "KbdInteractiveAuthentication"
    KBD_INTERACTIVE_DEVICES = "KbdInteractiveDevices"
    KEX_ALGORITHMS = "KexAlgorithms"
    KNOWN_HOSTS_COMMAND = "KnownHostsCommand"
    LOCAL_COMMAND = "LocalCommand"
    LOCAL_FORWARD = "LocalForward"
    LOG_LEVEL = "LogLevel"
    LOG_VERBOSE = "LogVerbose"
    MACS = "MACs"
    NO_HOST_AUTHENTICATION_FOR_LOCALHOST = "NoHostAuthenticationForLocalhost"
    NUMBER_OF_PASSWORD_PROMPTS = "NumberOfPasswordPrompts"
    OBSCURE_KEYSTROKE_TIMING = "ObscureKeystrokeTiming"
    PASSWORD_AUTHENTICATION = "PasswordAuthentication"
    PERMIT_LOCAL_COMMAND = "PermitLocalCommand"
    PERMIT_REMOTE_OPEN = "PermitRemoteOpen"
    PKCS11_PROVIDER = "PKCS11Provider"
    PORT = "Port"
    PREFERRED_AUTHENTICATIONS = "PreferredAuthentications"
    PROTOCOL = "Protocol"
    PROXY_COMMAND = "ProxyCommand"
    PROXY_JUMP = "ProxyJump"
    PROXY_USE_FDPASS = "ProxyUseFdpass"
    PUBKEY_ACCEPTED_ALGORITHMS = "PubkeyAcceptedAlgorithms"
    PUBKEY_ACCEPTED_KEY_TYPES = "PubkeyAcceptedKeyTypes"
    PUBKEY_AUTHENTICATION = "PubkeyAuthentication"
    REKEY_LIMIT = "RekeyLimit"
    REMOTE_COMMAND = "RemoteCommand"
    REMOTE_FORWARD = "RemoteForward"
    REQUEST_TTY = "RequestTTY"
    REQUIRED_RSA_SIZE = "RequiredRSASize"
    REVOKED_HOST_KEYS = "RevokedHostKeys"
    SECURITY_KEY_PROVIDER = "SecurityKeyProvider"
    SEND_ENV = "SendEnv"
    SERVER_ALIVE_COUNT_MAX = "ServerAliveCountMax"
    SERVER_ALIVE_INTERVAL = "ServerAliveInterval"
    SESSION_TYPE = "SessionType"
    SET_ENV = "SetEnv"
    STDIN_NULL = "StdinNull"
    STREAM_LOCAL_BIND_MASK = "StreamLocalBindMask"
    STREAM_LOCAL_BIND_UNLINK = "StreamLocalBindUnlink"
    STRICT_HOST_KEY_CHECKING = "StrictHostKeyChecking"
    SYSLOG_FACILITY = "SyslogFacility"
    TAG = "Tag"
    TCP_KEEP_ALIVE = "TCPKeepAlive"
    TUNNEL = "Tunnel"
    TUNNEL_DEVICE = "TunnelDevice"
    UPDATE_HOST_KEYS = "UpdateHostKeys"
    USE_KEYCHAIN = "UseKeychain"
    USER = "User"
    USER_KNOWN_HOSTS_FILE = "UserKnownHostsFile"
    VERIFY_HOST_KEY_DNS = "VerifyHostKeyDNS"
    VISUAL_HOST_KEY = "VisualHostKey"
    XAUTH_LOCATION = "XAuthLocation"

    @classmethod
    def from_keyword(cls, keyword: str) -> Optional["EntryKind"]:
        return _BY_KEYWORD.get(keyword.lower())


_BY_KEYWORD: Dict[str, EntryKind] = {kind.value.lower(): kind for kind in EntryKind}

# Kinds whose argument is the raw remainder of the line
COMMAND_KINDS = frozenset({EntryKind.PROXY_COMMAND, EntryKind.REMOTE_COMMAND, EntryKind.LOCAL_COMMAND})

Entry = Tuple[EntryKind, str]


@dataclass(frozen=True)
class LocalForward:
    local_port: str
    remote_host: str
    remote_port: str

    def __str__(self) -> str:
        return f"{self.local_port} -> {self.remote_host}:{self.remote_port}"


def parse_local_forward(value: str) -> Optional[LocalForward]:
    """Parse a ``LocalForward`` argument such as ``"8888 localhost:9999"``.

    Malformed values (a single token, or a remote endpoint that is not
    exactly ``host:port``) return None instead of raising.
    """
    parts = value.split()
    if len(parts) < 2:
        return None
    remote = parts[1].split(":")
    if len(remote) != 2:
        return None
    return LocalForward(local_port=parts[0], remote_host=remote[0], remote_port=remote[1])


@dataclass
class Block:
    patterns: List[str] = field(default_factory=list)
    entries: Dict[EntryKind, str] = field(default_factory=dict)
    local_forwards: List[LocalForward] = field(default_factory=list)

    @classmethod
    def from_entries(cls, patterns: Iterable[str], entries: Iterable[Entry]) -> "Block":
        block = cls(patterns=list(patterns))
        for entry in entries:
            block.update(entry)
        return block

    def update(self, entry: Entry) -> None:
        kind, value = entry
        if kind is EntryKind.LOCAL_FORWARD:
            forward = parse_local_forward(value)
            if forward is not None:
                self.local_forwards.append(forward)
            return
        self.entries[kind] = value

    def get(self, kind: EntryKind) -> Optional[str]:
        return self.entries.get(kind)

    def has_placeholder(self, token: str = "%h") -> bool:
        return any(token in value for value in self.entries.values())

    def copy(self) -> "Block":
        return Block(
            patterns=list(self.patterns),
            entries=dict(self.entries),
            local_forwards=list(self.local_forwards),
        )

    def is_empty(self) -> bool:
        return not self.entries and not self.local_forwards


_SURFACED_KINDS = frozenset({EntryKind.USER, EntryKind.HOSTNAME, EntryKind.PORT, EntryKind.PROXY_COMMAND})


@dataclass(frozen=True)
class ResolvedHost:
    name: str
    destination: str
    aliases: Tuple[str, ...] = ()
    user: Optional[str] = None
    port: Optional[str] = None
    proxy_command: Optional[str] = None
    local_forwards: Tuple[LocalForward, ...] = ()
    # Remaining entries as (keyword, value) pairs, in block order
    options: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_block(cls, block: Block) -> "ResolvedHost":
        name = block.patterns[0] if block.patterns else ""
        return cls(
            name=name,
            aliases=tuple(block.patterns[1:]),
            user=block.get(EntryKind.USER),
            destination=block.get(EntryKind.HOSTNAME) or "",
            port=block.get(EntryKind.PORT),
            proxy_command=block.get(EntryKind.PROXY_COMMAND),
            local_forwards=tuple(block.local_forwards),
            options=tuple(
                (kind.value, value) for kind, value in block.entries.items() if kind not in _SURFACED_KINDS
            ),
        )

    def to_block(self) -> Block:
        """Rebuild a single block equivalent to this host."""
        entries: Dict[EntryKind, str] = {EntryKind.HOSTNAME: self.destination}
        if self.user is not None:
            entries[EntryKind.USER] = self.user
        if self.port is not None:
            entries[EntryKind.PORT] = self.port
        if self.proxy_command is not None:
            entries[EntryKind.PROXY_COMMAND] = self.proxy_command
        for keyword, value in self.options:
            entries[EntryKind(keyword)] = value
        return Block(
            patterns=[self.name, *self.aliases],
            entries=entries,
            local_forwards=list(self.local_forwards),
        )

    @property
    def aliases_display(self) -> str:
        return ", ".join(self.aliases)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "aliases": list(self.aliases),
            "user": self.user,
            "destination": self.destination,
            "port": self.port,
            "proxy_command": self.proxy_command,
            "local_forwards": [
                {
                    "local_port": lf.local_port,
                    "remote_host": lf.remote_host,
                    "remote_port": lf.remote_port,
                }
                for lf in self.local_forwards
            ],
            "options": dict(self.options),
        }


__all__ = [
    "EntryKind",
    "Entry",
    "COMMAND_KINDS",
    "LocalForward",
    "parse_local_forward",
    "Block",
    "ResolvedHost",
]
