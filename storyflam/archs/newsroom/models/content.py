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

"""Story content model.

A story body is stored in one of two shapes: the legacy list of editor blocks,
or a single rich-text HTML document. The two are a tagged union on ``kind`` so
renderers and exporters can match on it exhaustively.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class BlockType(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BOLD = "bold"
    LIST = "list"
    SEPARATOR = "separator"
    IMAGE = "image"
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    VIDEO = "video"
    LINK = "link"


class ContentBlock(BaseModel):
    """One block of legacy editor content.

    Accepts the editor's camelCase keys (``listType``, ``thumbnailUrl``...)
    as well as snake_case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: BlockType
    text: str | None = None
    items: list[str] | None = None
    list_type: Literal["ordered", "unordered"] | None = None
    url: str | None = None
    width: int | None = None
    height: int | None = None
    aspect_ratio: str | None = None
    thumbnail_url: str | None = None
    title: str | None = None
    color: str | None = None
    caption: str | None = None


class BlockContent(BaseModel):
    kind: Literal["blocks"] = "blocks"
    blocks: list[ContentBlock] = Field(default_factory=list)


class HtmlContent(BaseModel):
    kind: Literal["html"] = "html"
    html: str = ""


StoryContent = Annotated[BlockContent | HtmlContent, Field(discriminator="kind")]

story_content_adapter: TypeAdapter[BlockContent | HtmlContent] = TypeAdapter(StoryContent)
