"""
Glossary content for `tailmesh glossary [term]`.
Each entry: (display_name, definition_text).
"""

GLOSSARY: dict[str, tuple[str, str]] = {
    "tailnet": (
        "Tailnet",
        "A Tailscale-managed private mesh network of devices. Every device on it gets a stable "
        "100.x.y.z address and can reach the others directly, wherever they are.",
    ),
    "rssh": (
        "RSSH (remote SSH)",
        "Running a command on another tailnet machine over SSH, addressed by its hostname. "
        "tailmesh resolves the hostname to the machine's Tailscale IP from `tailscale status`.",
    ),
    "icmp": (
        "ICMP (Internet Control Message Protocol)",
        "The protocol used by ping for basic reachability checks. Firewalls (Windows Defender Firewall "
        "in particular) often block it, so a failed ICMP ping with a working Tailscale ping usually means a "
        "firewall rule, not a dead host.",
    ),
    "tailscale ping": (
        "Tailscale ping",
        "A ping sent through Tailscale itself (`tailscale ping`). It bypasses the host firewall and shows "
        "whether the connection is direct or relayed through DERP.",
    ),
    "derp": (
        "DERP",
        "Tailscale's relay servers. Traffic falls back to DERP when two devices cannot connect directly; "
        "it works but adds latency.",
    ),
    "active": (
        "Active / Idle / Offline",
        "The state `tailscale status` reports for a peer. Active: traffic recently exchanged. "
        "Idle: online but no recent traffic. Offline: the coordination server has not heard from it.",
    ),
    "mesh audit": (
        "Mesh audit",
        "An all-to-all check: tailmesh logs in to every machine and has it `tailscale ping` every other "
        "machine, showing which pairs can reach each other.",
    ),
    "auth key": (
        "Auth key",
        "A pre-generated key from the Tailscale admin console that lets `tailscale up` join a machine "
        "without an interactive browser login.",
    ),
}


def get_glossary_entry(term: str) -> tuple[str, str] | None:
    """Return (display_name, definition) for a term, or None. Matching is case-insensitive and by key."""
    key = term.strip().lower()
    if key in GLOSSARY:
        return GLOSSARY[key]
    # Allow partial key match (e.g. "mesh" -> "mesh audit")
    for k, v in GLOSSARY.items():
        if key in k or k.startswith(key):
            return v
    return None


def list_glossary_terms() -> list[str]:
    """Return sorted list of glossary keys (terms)."""
    return sorted(GLOSSARY.keys())
