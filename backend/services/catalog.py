"""Built-in catalog values: channels, pricing and the default archetypes."""

CHANNELS = ("chat", "web_link", "inbound_call", "outbound_call")

PRICE_BY_CHANNEL = {
    "chat": 10,
    "web_link": 10,
    "inbound_call": 20,
    "outbound_call": 30,
}

PROJECT_TYPES = ("consumer", "b2b", "internal", "other")

DEFAULT_ARCHETYPES = [
    {
        "id": "expert_deep_dive",
        "title": "Expert Deep-Dive",
        "description": "In-depth technical discussions with subject matter experts",
        "icon": "Microscope",
        "use_case": "Technical validation, detailed research insights",
        "examples": ["Battery technology expert interviews", "Software architecture discussions"],
    },
    {
        "id": "client_stakeholder",
        "title": "Client Stakeholder",
        "description": "Strategic conversations with business decision-makers",
        "icon": "Users",
        "use_case": "Requirements gathering, strategic alignment",
        "examples": ["Executive interviews", "Stakeholder alignment sessions"],
    },
    {
        "id": "customer_user",
        "title": "Customer User",
        "description": "Understanding end-user needs and experiences",
        "icon": "Heart",
        "use_case": "User research, product feedback, experience mapping",
        "examples": ["Product usability studies", "User journey mapping"],
    },
    {
        "id": "rapid_survey",
        "title": "Rapid Survey",
        "description": "Quick pulse checks and quantitative data collection",
        "icon": "Zap",
        "use_case": "Market research, quick polls, feedback collection",
        "examples": ["NPS surveys", "Quick preference polling"],
    },
    {
        "id": "diagnostic",
        "title": "Diagnostic",
        "description": "Problem identification and root cause analysis",
        "icon": "Search",
        "use_case": "Issue investigation, process analysis",
        "examples": ["Problem diagnosis interviews", "Process improvement research"],
    },
    {
        "id": "investigative",
        "title": "Investigative",
        "description": "Deep research and fact-finding missions",
        "icon": "FileSearch",
        "use_case": "Market research, competitive analysis",
        "examples": ["Competitive landscape research", "Due diligence research"],
    },
    {
        "id": "panel_moderator",
        "title": "Panel Moderator",
        "description": "Facilitating group discussions and workshops",
        "icon": "Users2",
        "use_case": "Focus groups, workshops, collaborative sessions",
        "examples": ["Focus groups", "Workshop facilitation"],
    },
]


def price_for_channel(channel: str) -> int:
    return PRICE_BY_CHANNEL.get(channel, PRICE_BY_CHANNEL["chat"])
