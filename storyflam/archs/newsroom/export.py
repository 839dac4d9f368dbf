# Copyright (c) Nex-AGI. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Plain-text export of stories."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from .models import BlockContent, BlockType, ContentBlock, HtmlContent, StoryModel

_HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def _html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["img", "video"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for hr in soup.find_all("hr"):
        hr.replace_with("\n---\n")
    for tag in soup.find_all(["p", *_HEADINGS]):
        tag.append("\n\n")
    for li in soup.find_all("li"):
        li.append("\n")
    text = soup.get_text()
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def _strip_tags(text: str) -> str:
    return BeautifulSoup(text, "html.parser").get_text()


def _block_to_text(block: ContentBlock) -> str:
    match block.type:
        case BlockType.PARAGRAPH:
            return _strip_tags(block.text or "") + "\n\n"
        case BlockType.HEADING:
            return f"\n## {block.text or ''}\n\n"
        case BlockType.BOLD:
            return f"**{block.text or ''}**\n\n"
        case BlockType.SEPARATOR:
            return "\n---\n\n"
        case BlockType.LIST:
            items = block.items or []
            if block.list_type == "ordered":
                lines = [f"{i}. {item}" for i, item in enumerate(items, start=1)]
            else:
                lines = [f"• {item}" for item in items]
            return "\n".join(lines) + "\n\n"
        case BlockType.IMAGE:
            return f"[Image: {block.caption}]\n\n" if block.caption else ""
        case BlockType.YOUTUBE | BlockType.VIMEO:
            return f"[Video: {block.url}]\n\n"
        case BlockType.VIDEO:
            return "[Video]\n\n"
        case BlockType.LINK:
            return f"{block.text or ''} ({block.url or ''})\n\n"


def content_to_plain_text(content: BlockContent | HtmlContent | None) -> str:
    """Flatten story content to plain text for export."""
    match content:
        case None:
            return ""
        case HtmlContent(html=html):
            return _html_to_text(html)
        case BlockContent(blocks=blocks):
            return "".join(_block_to_text(block) for block in blocks)


def slugify(text: str) -> str:
    """Lowercase, dash-separated, at most 50 characters."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:50]


def export_to_txt(story: StoryModel) -> tuple[str, str]:
    """Render a story as a plain-text document.

    Returns:
        (filename, text)
    """
    text = f"{story.title}\nBy {story.author_name}\n{'=' * 40}\n\n"
    if story.summary:
        text += f"{story.summary}\n\n"
    text += content_to_plain_text(story.content)
    return f"{slugify(story.title) or 'story'}.txt", text
