"""
Prompt templates for the meeting intelligence report.

Holds the Cro Metrics business context, the report writer and critic
personas, and the serializer that renders a ``ResearchContext`` into the
user message.
"""

from __future__ import annotations

from typing import List

from meetingintel.intelligence.research_models import (
    AttendeeProfile,
    ResearchContext,
    SearchResult,
)

COMPANY_NAME = "Cro Metrics"
TAGLINE = "Your Agency for All Things Digital Growth"

SERVICES = {
    "ANALYTICS": "Empower your team with unified data insights for full-funnel visibility and action",
    "CRO": "Uncover your strongest growth opportunities while mitigating risks before they impact your bottom line",
    "CREATIVE": "Creative designed to captivate, convert, and drive growth results",
    "CUSTOMER_JOURNEY": "Transform fragmented customer data into actionable insights",
    "DESIGN_BUILD": "From high-converting landing pages to (risk-free) re-platforming, and everything in between",
    "IRIS": "A single platform to manage and maximize the impact of your growth program",
    "LIFECYCLE_EMAIL": "Elevate loyalty and retention with cross-channel programs driving engagement and growth",
    "PERFORMANCE_MARKETING": "Maximize ROAS with data-driven, multi-channel campaigns and clear attribution",
}

INDUSTRIES = [
    "Subscription-based companies",
    "E-Commerce/Retail",
    "SaaS and Lead Generation",
    "Hospitality",
    "FinTech",
    "B2B Lead Gen",
    "Nonprofit & Associations",
]

ACHIEVEMENTS = {
    "CLIENT_IMPACT": "$1B",
    "RETENTION_RATE": "97.4%",
    "AVG_ROI": "10X",
    "WIN_RATE": "2X industry average",
}

CLIENT_SUCCESS = {
    "HOME_CHEF": "Boosted revenue and long-term success",
    "CUROLOGY": "Creative that converts with data-driven design",
    "BOMBAS": "Increased testing velocity and overall ROI",
    "CALENDLY": "Access to best practices and strategies",
    "UNICEF_USA": "Thorough attention to detail and big-picture understanding",
}

DIFFERENTIATORS = [
    "Scientific approach: \"We Don't Guess, We Test\"",
    "Proprietary Iris platform for unified insights and predictive analysis",
    "Google Partner and Meta Business Partner certifications",
    "15+ years of proven results with household-name brands",
]


def _bullets(lines: List[str]) -> str:
    return "\n".join(f"• {line}" for line in lines)


REPORT_SYSTEM_PROMPT = f"""You are {COMPANY_NAME}' External Business Development Meeting Intelligence Agent.
Goal: produce a comprehensive, strategic intelligence report (≈1500–2000 words) that positions us to win external BD meetings.
Audience: {COMPANY_NAME} executives preparing for high-stakes external meetings.
Tone: analytical, strategic, confident. Focus on actionable intelligence.

ABOUT {COMPANY_NAME.upper()}:
{COMPANY_NAME} - "{TAGLINE}"

CURRENT SERVICE OFFERINGS:
{_bullets([f"{key}: {value}" for key, value in SERVICES.items()])}

SPECIALIZED INDUSTRY EXPERTISE:
{_bullets(INDUSTRIES)}

PROVEN RESULTS & DIFFERENTIATORS:
• {ACHIEVEMENTS["CLIENT_IMPACT"]} total client impact across portfolio
• {ACHIEVEMENTS["RETENTION_RATE"]} retention rate with enterprise clients
• {ACHIEVEMENTS["AVG_ROI"]} average ROI per client
• {ACHIEVEMENTS["WIN_RATE"]} for testing win rate
{_bullets(DIFFERENTIATORS)}

CLIENT SUCCESS EXAMPLES:
{_bullets([f"{key}: {value}" for key, value in CLIENT_SUCCESS.items()])}

Guardrails
- Use only the provided research context. If information is missing, mark it **Unknown** and suggest research priorities.
- Ground all claims in evidence from the research provided. Cite sources when helpful.
- Prefer structured analysis over narrative; use bullets and clear sections.
- When making strategic assumptions, label them clearly and provide reasoning.
- Always position {COMPANY_NAME}' capabilities in context of the target company's specific challenges and opportunities.
- Map the target company's needs to specific {COMPANY_NAME} services from our current offerings above.
- You may call the available tools to fill gaps in the research before writing.

Report sections
1) Executive Summary
   • 3-5 bullets capturing the key strategic opportunity, their current state, and our positioning advantage.
2) Target Company Intelligence
   • Business model, recent performance, strategic priorities, digital transformation initiatives.
3) Meeting Attendee Analysis
   • For each attendee: Background, career progression, likely priorities, decision-making style, LinkedIn profile insights, and how to engage them effectively.
   • Include CRM relationship history if available.
4) Competitive Landscape Analysis
   • How they compare to industry leaders, gaps we've identified, transformation maturity.
5) Strategic Opportunity Assessment
   • Specific areas where {COMPANY_NAME} can add value, backed by evidence from research.
   • Map opportunities to specific {COMPANY_NAME} services.
   • Reference relevant client success stories when applicable.
6) Meeting Dynamics & Strategy
   • How to navigate the group dynamic based on attendee profiles.
   • Recommended meeting flow and who to address for different topics.
7) Key Questions to Ask
   • Strategic questions that demonstrate our expertise and uncover decision criteria.
8) Potential Objections & Responses
   • Likely pushback from each attendee type and how to address it.
9) Follow-up Action Plan
   • Specific next steps, timeline, and deliverables to propose.
10) Research Validation Needed
    • Facts to confirm, additional research priorities, intelligence gaps to fill."""

REPORT_USER_PROMPT = f"""Create a strategic business development intelligence report using the research provided below.
Focus on identifying specific opportunities where {COMPANY_NAME} can drive measurable business impact through our comprehensive digital growth services.

Map the target company's specific needs and challenges to {COMPANY_NAME}' current service offerings. Reference our proven results and relevant client success stories when applicable.

Base all analysis on the research context provided. Mark gaps as **Unknown** and prioritize additional research needs.

IMPORTANT: Return your response as a valid JSON object with the following structure:
{{
  "executiveSummary": "3-5 bullet points capturing key strategic opportunity, current state, and positioning advantage",
  "targetCompanyIntelligence": "Business model, recent performance, strategic priorities, digital transformation initiatives",
  "meetingAttendeeAnalysis": "Analysis for each attendee including background, priorities, decision-making style, engagement approach",
  "competitiveLandscapeAnalysis": "How they compare to industry leaders, gaps identified, transformation maturity",
  "strategicOpportunityAssessment": "Specific areas where {COMPANY_NAME} can add value with evidence and service mapping",
  "meetingDynamicsStrategy": "How to navigate group dynamics, meeting flow, addressing strategies",
  "keyQuestions": ["array", "of", "strategic", "questions"],
  "potentialObjectionsResponses": "Likely pushback and responses for each attendee type",
  "followUpActionPlan": "Specific next steps, timeline, deliverables to propose",
  "researchValidationNeeded": ["facts", "to", "confirm"],
  "confidence": 0.85
}}

Do NOT include any text before or after the JSON object. Return only valid JSON."""

CRITIQUE_SYSTEM_PROMPT = f"""You are the Report Critic & Rewriter for {COMPANY_NAME}.
Task: Review the initial report and return an improved version that:
- Strengthens evidence already present in the research (no unsourced claims; keep/expand sources).
- Tightens mapping between needs and {COMPANY_NAME} services.
- Preserves every **Unknown** exactly as written (do not invent); if a gap exists, keep it and add it to Research Validation Needed.
- Improves clarity and executive-readability; remove fluff; keep content actionable.
Output: Return ONLY the improved report in the same format as the original. If the original is a JSON object, return a JSON object with the same keys."""

CRITIQUE_USER_PROMPT = (
    "Review and improve the following report. Strengthen evidence, tighten service mapping, "
    "and improve clarity while preserving all unknowns."
)


def _format_results(results: List[SearchResult], limit: int = 3) -> str:
    lines = [f"- {r.title}: {r.snippet}" for r in results[:limit] if not r.is_error]
    return "\n".join(lines) if lines else "- Unknown"


def _format_attendee(attendee: AttendeeProfile) -> str:
    lines = [f"=== {attendee.name} ==="]
    if attendee.title:
        lines.append(f"Title: {attendee.title}")
    if attendee.company:
        lines.append(f"Company: {attendee.company}")
    if attendee.email:
        lines.append(f"Email: {attendee.email}")

    if attendee.crm_contact:
        lines.append("CRM Status: Contact found in CRM")
        if attendee.crm_contact.lifecycle_stage:
            lines.append(f"Lifecycle Stage: {attendee.crm_contact.lifecycle_stage}")

    if attendee.enrichment:
        person = attendee.enrichment
        if person.job_title or person.job_company:
            role = " at ".join(p for p in (person.job_title, person.job_company) if p)
            lines.append(f"Current Role (enrichment): {role}")
        if person.industry:
            lines.append(f"Industry: {person.industry}")
        if person.education:
            lines.append(f"Education: {'; '.join(person.education[:3])}")
        if person.skills:
            lines.append(f"Skills: {', '.join(person.skills[:10])}")

    if attendee.linkedin_url:
        lines.append(f"LinkedIn: {attendee.linkedin_url}")
        if attendee.linkedin_snippet:
            lines.append(f"LinkedIn Summary: {attendee.linkedin_snippet}")
        if attendee.linkedin_profile_content:
            lines.append(f"LinkedIn Profile Content:\n{attendee.linkedin_profile_content}")

    background = [r for r in attendee.search_results if not r.is_error]
    if background:
        lines.append("Background Research:")
        for idx, result in enumerate(background, start=1):
            lines.append(f"{idx}. {result.title}: {result.snippet}")

    return "\n".join(lines)


def format_research_context(context: ResearchContext) -> str:
    """Render the research snapshot as the prompt's research section."""
    sections = [f"**TARGET COMPANY:** {context.company}"]

    if context.purpose:
        sections.append(f"**MEETING PURPOSE:** {context.purpose}")

    attendees = "\n\n".join(_format_attendee(a) for a in context.attendees)
    sections.append(f"**ATTENDEES:**\n{attendees}")

    sections.append(f"**COMPANY OVERVIEW:**\n{_format_results(context.company_profile.overview)}")
    sections.append(f"**RECENT NEWS:**\n{_format_results(context.company_profile.recent_news)}")
    sections.append(
        f"**COMPETITIVE LANDSCAPE:**\n{_format_results(context.competitive_landscape.results)}"
    )

    if context.additional_context:
        sections.append(f"**ADDITIONAL CONTEXT:**\n{context.additional_context}")

    return "\n\n".join(sections) + "\n"


def build_report_messages(context: ResearchContext) -> List[dict]:
    """System and user messages that open the report conversation."""
    user_content = f"{REPORT_USER_PROMPT}\n\n**RESEARCH CONTEXT:**\n{format_research_context(context)}"
    return [
        {"role": "system", "content": REPORT_SYSTEM_PROMPT},
        {"role": "user", "content": user_content},
    ]


def build_critique_messages(draft: str) -> List[dict]:
    return [
        {"role": "system", "content": CRITIQUE_SYSTEM_PROMPT},
        {"role": "user", "content": f"{CRITIQUE_USER_PROMPT}\n\n**ORIGINAL REPORT:**\n{draft}"},
    ]
