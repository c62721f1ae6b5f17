"""Default prompt templates.

Templates are rendered with ``str.format``; literal braces are doubled.
"""

CLASSIFICATION = {
    "system": "You classify captured links for a personal knowledge base.",
    "user": """Analyze this content and classify it.

{context}

Return a JSON object with:
- title: A concise title (max 60 chars). For repos, use the repo name. For techniques, describe the technique.
- summary: One sentence summary (max 150 chars) of what this is and why it's useful.
- domain: One of {valid_domains}. Choose the best match:
  {domain_list}
- content_type: One of "repo", "technique", "tool", "resource", "person".
  - repo = GitHub repository
  - technique = A method, pattern, or approach
  - tool = A product or service (not open source)
  - resource = An article, tutorial, or reference
  - person = A creator or expert to follow
- tags: Array of 3-5 relevant tags (lowercase, hyphenated)

Return ONLY valid JSON, no markdown or explanation.""",
}

CANDIDATE_EXTRACTION = {
    "system": "You find open source projects mentioned in transcripts.",
    "user": """Extract names of software tools, libraries, CLI tools, or projects mentioned in this transcript that could potentially be open source GitHub repositories.

Rules:
- Include specific tool/project names (e.g., "repeater", "sharp", "ffmpeg", "ink", "zod")
- IMPORTANT: This may be an audio transcript, so names may be misspelled. Correct likely transcription errors:
  - "Inc" when describing React terminal UIs is probably "Ink"
  - "Zod" might be transcribed as "Zaud" or "Sod"
  - Think about what the actual GitHub repo name would be
- For each name, include 2-4 keywords describing what it does (for better GitHub search)
- Do NOT include well-known commercial services (e.g., "ChatGPT", "Figma", "Notion", "AWS", "Discord", "Telegram", "WhatsApp")
- Do NOT include generic terms (e.g., "terminal", "algorithm", "app", "bot")
- Return a JSON array of objects with "name" (corrected spelling) and "context" fields. If none found, return [].

Example output:
[{{"name": "ink", "context": "React terminal CLI components"}}, {{"name": "sharp", "context": "image processing Node.js"}}]

Transcript:
{text}""",
}

REPO_ARBITER = {
    "system": "You match descriptions to GitHub repositories.",
    "user": """Which GitHub repository best matches what's described in this context?

Context:
{context}

Candidate repositories:
{repo_list}

Instructions:
- Select the repository that best matches what's being discussed
- Consider: Does the description match? Is the functionality aligned? Is it a well-known project?
- If NONE of the repositories match what's described, respond with "0"
- Otherwise, respond with ONLY the number (1-{count}) of the best match""",
}

REPO_VALIDATION = {
    "system": "You match descriptions to GitHub repositories.",
    "user": """Determine if this GitHub repository is the one being discussed.

Context (discussing "{name}"):
{context}

GitHub Repository:
- Name: {full_name}
- Description: {description}
- Topics: {topics}
- Stars: {stars}

Question: Is this GitHub repository "{full_name}" the actual project/tool being discussed as "{name}"?

Consider:
- Does the repo description match what the context describes?
- Is the repo name similar to what's mentioned (account for transcription errors)?
- Does the functionality align?

Respond with ONLY "yes" or "no".""",
}

CONTAINER_ASSIGNMENT = {
    "system": "You are a personal knowledge organizer.",
    "user": """File this item into the right container(s).

ITEM:
- Title: {title}
- Summary: {summary}
- Tags: {tags}
- Domain: {domain}
- Type: {content_type}

EXISTING CONTAINERS:
{container_list}

ACTIVE PROJECTS (context hints, these tell you what topics the user cares about):
{anchor_list}

RULES:
1. File into 1-3 existing containers if they fit. Prefer existing containers over creating new ones.
2. Only create a new container if NO existing container is relevant. Be reluctant to create.
3. New container names: 2-4 words, broad enough for 5-20 items (e.g., "AI Dev Tools" not "Cursor Extensions").
4. New container descriptions: one sentence explaining what belongs there.
5. An item can belong to multiple containers if genuinely relevant to each.

Return ONLY valid JSON, no markdown:
{{"existing": ["container-id-1"], "create": [{{"name": "Name", "description": "Description"}}]}}

Either array can be empty, but not both.""",
}

INTERESTS = {
    "system": "You extract a user's interests from saved items.",
    "user": """Extract interests from this captured item. Return JSON with:
- topics: Technical topics (e.g., "react-three-fiber", "camera-controls", "embeddings")
- tools: Specific tools or products (e.g., "cursor", "vercel", "supabase")
- people: People or accounts mentioned (e.g., "@levelsio", "Guillermo Rauch")
- repos: GitHub repo identifiers (e.g., "pmndrs/drei", "vercel/next.js")

{context}

Return ONLY valid JSON, no markdown. Keep values lowercase and hyphenated where appropriate.
Example: {{"topics": ["semantic-search"], "tools": ["pgvector"], "people": [], "repos": []}}""",
}

SOCIAL_POST = {
    "system": "",
    "user": """Fetch and analyze this X/Twitter URL: {url}

Please provide:
1. The full text content of the post/thread/article
2. The author's name/handle
3. A concise summary (2-3 sentences) of the key points
4. A transcript of any embedded video, if present
5. Any GitHub repositories or tools mentioned

Format your response as JSON:
{{
  "fullText": "the complete text content",
  "authorName": "author name or handle",
  "summary": "concise summary",
  "videoTranscript": "transcript or null",
  "mentionedRepos": ["repo1", "repo2"],
  "mentionedTools": ["tool1", "tool2"]
}}""",
}


def render(prompt: dict, **values: object) -> list[dict[str, str]]:
    """Build chat messages from a prompt template."""
    messages = []
    if prompt.get("system"):
        messages.append({"role": "system", "content": prompt["system"]})
    messages.append({"role": "user", "content": prompt["user"].format(**values)})
    return messages
