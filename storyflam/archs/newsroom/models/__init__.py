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

"""Newsroom storage models.

All table models inherit directly from SQLModel:
- StoryModel: Story row, including the embedded edit lock fields
- PublicationModel: Publication branding
- NewslabModel: Newslab-wide settings
- ActivityLogModel: Audit trail entries
"""

from .activity import ActivityAction, ActivityLogModel
from .content import BlockContent, BlockType, ContentBlock, HtmlContent, StoryContent
from .publication import NewslabModel, PublicationModel
from .story import StoryModel, StoryStatus
from .types import utc_now

ALL_MODELS = [StoryModel, PublicationModel, NewslabModel, ActivityLogModel]

__all__ = [
    "StoryModel",
    "StoryStatus",
    "PublicationModel",
    "NewslabModel",
    "ActivityLogModel",
    "ActivityAction",
    "ContentBlock",
    "BlockType",
    "BlockContent",
    "HtmlContent",
    "StoryContent",
    "ALL_MODELS",
    "utc_now",
]
