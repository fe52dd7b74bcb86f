"""
Roles and the static email → role lookup table.

A profile's role is decided once, when the profile is created: C-level
mailboxes of the three workspaces map to their role, everybody else is a
Member.
"""

CEO = 'CEO'
CFO = 'CFO'
COO = 'COO'
CTO = 'CTO'
CMO = 'CMO'
CHRO = 'CHRO'
CDO = 'CDO'
MEMBER = 'Member'

ROLE_CHOICES = [
    (CEO, 'Chief Executive Officer'),
    (CFO, 'Chief Financial Officer'),
    (COO, 'Chief Operating Officer'),
    (CTO, 'Chief Technology Officer'),
    (CMO, 'Chief Marketing Officer'),
    (CHRO, 'Chief Human Resources Officer'),
    (CDO, 'Chief Design Officer'),
    (MEMBER, 'Member'),
]

ROLES = [value for value, _label in ROLE_CHOICES]

_MAILBOX_ROLES = {
    'ceo': CEO,
    'cfo': CFO,
    'coo': COO,
    'cto': CTO,
    'cmo': CMO,
    'chro': CHRO,
    'cdo': CDO,
}

_ROLE_DOMAINS = ['mentorme.com', 'howe.com', 'neo.com']

ROLE_MAPPINGS = {
    f'{mailbox}@{domain}': role
    for domain in _ROLE_DOMAINS
    for mailbox, role in _MAILBOX_ROLES.items()
}

# Reminder management and the automatic task digest go to these roles
MANAGER_ROLES = [CEO, COO]


def role_for_email(email):
    """Look up the role for an email address, defaulting to Member"""
    if not email:
        return MEMBER
    return ROLE_MAPPINGS.get(email.strip().lower(), MEMBER)


def has_role(user, *roles):
    """True if the authenticated user holds one of the given roles"""
    if not user or not user.is_authenticated:
        return False
    return getattr(user, 'role', None) in roles
