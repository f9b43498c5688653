"""
Itinerary Narrator.
Turns the user's selected landmarks into a markdown travel report.
"""
import logging
from typing import Any, Optional

from .llm_client import LLMClient

logger = logging.getLogger(__name__)


LANDMARKS_MARKER = "Here are the selected landmarks:"

REPORT_TEMPLATE = """You are a knowledgeable travel assistant. Create a detailed travel report following this EXACT markdown format. DO NOT add any additional sections or modify the format:

# Travel Planning Report

## 🗺️ Basic Travel Overview
- **Destination**: {destination}
- **Number of Days**: {days}
- **Number of Travelers**: {travelers}
- **Personality Type**: {personality}{dates_line}

## 🎯 Selected Landmarks
{landmarks}

## 💰 Budget Planning
### Overall Budget
[Provide budget range]

### Budget Optimization Suggestions
- [Budget tip 1]
- [Budget tip 2]
- [Budget tip 3]

## 🏨 Accommodation Arrangements
### Recommended Accommodation Types
- **Accommodation Style**: [Based on personality]
- **Budget Accommodation Options**:
  1. [Option 1]
  2. [Option 2]

## 📅 Detailed Itinerary
### Itinerary Overview
| Date | Morning | Afternoon | Evening |
|:---:|:---:|:---:|:---:|
{table_rows}

## 💡 Personalized Recommendations
### Curated Based on Your Travel Personality
- **Must-Do Experiences**:
  - [Experience 1]
  - [Experience 2]
  - [Experience 3]
- **Hidden Travel Gems**:
  - [Hidden gem 1]
  - [Hidden gem 2]
- **Unique Local Experiences**:
  - [Local experience 1]
  - [Local experience 2]

Use the provided landmarks and their descriptions to fill in the specific details. Make sure to incorporate all selected landmarks into the daily itinerary. Maintain exact emoji usage and formatting. Focus on providing practical and engaging content while keeping the exact structure."""


class ItineraryNarrator:
    """Generates the free-text itinerary report. Output is passed through untouched."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def generate(
        self,
        query: str,
        landmarks: Optional[list[str]] = None,
        total_days: Optional[int] = None,
        travelers: Optional[int] = None,
        personality: Optional[str] = None,
        main_destination: Optional[str] = None,
        dates: Optional[Any] = None
    ) -> str:
        """
        Request a markdown travel report.

        Args:
            query: The user's message, forwarded as the user turn
            landmarks: Selected landmark lines; parsed from the query when omitted
            total_days: Number of rows in the day table
            travelers: Number of travelers
            personality: Travel personality label
            main_destination: Main destination of the trip
            dates: Travel dates as sent by the client

        Returns:
            Markdown report
        """
        landmarks = landmarks or extract_landmarks(query)
        messages = [
            {
                "role": "system",
                "content": build_report_prompt(
                    landmarks, total_days, travelers, personality, main_destination, dates
                )
            },
            {"role": "user", "content": query},
        ]
        logger.info(f"Generating itinerary report for {len(landmarks)} landmarks, {total_days or '?'} days")
        return await self.llm.chat(messages)


def extract_landmarks(query: str) -> list[str]:
    """Landmark lines following the 'Here are the selected landmarks:' marker."""
    if not query or LANDMARKS_MARKER not in query:
        return []
    tail = query.split(LANDMARKS_MARKER, 1)[1]
    lines = []
    for line in tail.splitlines():
        line = line.strip()
        if not line:
            continue
        # Drop "1. " style numbering
        head, sep, rest = line.partition(". ")
        if sep and head.isdigit():
            line = rest.strip()
        lines.append(line)
    return lines


def build_report_prompt(
    landmarks: list[str],
    total_days: Optional[int] = None,
    travelers: Optional[int] = None,
    personality: Optional[str] = None,
    main_destination: Optional[str] = None,
    dates: Optional[Any] = None
) -> str:
    """Fill the report template; the day table gets one empty row per day."""
    table_rows = "\n".join(f"| Day {i + 1} | | | |" for i in range(total_days or 0))
    dates_line = f"\n- **Travel Dates**: {_format_dates(dates)}" if dates else ""
    return REPORT_TEMPLATE.format(
        destination=main_destination or "[Extract from landmarks]",
        days=total_days or "[Calculate based on landmarks]",
        travelers=travelers or "2-4",
        personality=personality or "Cultural Explorer",
        dates_line=dates_line,
        landmarks="\n".join(f"- {name}" for name in landmarks),
        table_rows=table_rows,
    )


def _format_dates(dates: Any) -> str:
    if isinstance(dates, dict):
        start, end = dates.get("start") or dates.get("from"), dates.get("end") or dates.get("to")
        if start and end:
            return f"{start} to {end}"
    if isinstance(dates, (list, tuple)):
        return " to ".join(str(d) for d in dates)
    return str(dates)
