"""The ordered fields extracted from postings and resumes.

Both lists share several names (``ArchModel``, ``ExpYears``, ``LeadApproach``
...) so the synthesis prompt can compare requirement against qualification.
"""

JOB_KEYS: tuple[str, ...] = (
    # Company
    "CompanyName", "CompanyType", "CompanyValue",
    # Role
    "RoleTitle", "RoleLevel", "RoleFocus", "RoleScope",
    # Team
    "TeamStructure",
    # Technical
    "TechRequired", "TechValuable", "TechHelpful",
    # Systems
    "SysRequired", "SysValuable", "SysHelpful",
    # Skills
    "SkillRequired", "SkillValuable", "SkillHelpful",
    # Architecture
    "ArchModel",
    # Experience
    "ExpYears", "ExpField", "ExpDepth",
    "LeadApproach",
    "CollabApproach",
    "ImpactTarget",
    "ValuePropositions",
)

APP_KEYS: tuple[str, ...] = (
    # Applicant
    "ApplicantName", "ApplicantTakeaway", "ApplicantIntroduction",
    # Current role
    "RoleCurrent", "ScopeCurrent",
    # Technical
    "TechExpert", "TechStrong", "TechFamiliar",
    # Systems
    "SysExpert", "SysStrong", "SysFamiliar",
    # Skills
    "SkillExpert", "SkillStrong", "SkillFamiliar",
    # Architecture
    "ArchModel",
    # Experience
    "ExpYears", "ExpField", "ExpDepth",
    "LeadApproach",
    "CollabApproach",
    # Impact
    "ImpactProven", "BuildProven",
    "ValueProposition",
    "ApplicantHighlights",
)


def placeholder_name(key: str) -> str:
    """``CompanyName`` -> ``Company Name``, used for template placeholders."""
    if key.endswith("Name"):
        return f"{key[:-4]} Name"
    return key
