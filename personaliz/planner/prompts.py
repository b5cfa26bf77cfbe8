PLANNER_PROMPT = """You are planning an automation agent from user intent.
User request:
{spec}

Available scripts:
- linkedin_bot.js (posting)
- linkedin_comment_bot.js (commenting)
- linkedin_hashtag_monitor.js (monitoring hashtags)
- linkedin_trending_scraper.js (trending analysis)

Return ONLY JSON with this shape:
{{
  "needs_more_info": boolean,
  "question": "only if needed",
  "name": "agent name",
  "role": "role",
  "goal": "goal",
  "tools": ["playwright","linkedin","llm"],
  "schedule": "daily|hourly|weekly|every X minutes",
  "schedule_time": "HH:MM",
  "script_file": "linkedin_bot.js|linkedin_comment_bot.js|linkedin_hashtag_monitor.js|linkedin_trending_scraper.js|none",
  "reason": "short reason"
}}"""

POST_CONTENT_PROMPT = """Write a concise professional LinkedIn post for this request:
{spec}
{link_hint}
Return only post text."""

COMMENT_CONTENT_PROMPT = """Write a concise professional LinkedIn comment for this request:
{spec}
{link_hint}
Return only comment text."""

LINK_HINT = "Include this GitHub link naturally: {link}"

LINKEDIN_POST_PROMPT = """Generate a professional LinkedIn post based on this request:
{request}

Requirements:
- Professional tone
- Include relevant emojis
- Add 3-5 hashtags
- Keep it under 200 words
- Make it engaging

Return ONLY the post text, no explanations."""

CHAT_PROMPT = "You are Personaliz Desktop Assistant.\n{message}"


def link_hint(link: str) -> str:
    return LINK_HINT.format(link=link) if link else ""
