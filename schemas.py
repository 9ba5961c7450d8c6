from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator

# Request Schemas
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    username: str = Field(min_length=3, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    name: Optional[str] = Field(default=None, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=600)
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(default=None, min_length=8, max_length=128)

class SREFCreate(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    prompt_examples: List[str] = []
    category_id: Optional[int] = None
    tag_ids: List[int] = []
    image_urls: List[str] = []
    premium: bool = False

class SREFUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    prompt_examples: Optional[List[str]] = None
    category_id: Optional[int] = None
    tag_ids: Optional[List[int]] = None
    image_urls: Optional[List[str]] = None
    premium: Optional[bool] = None

class SREFStatusUpdate(BaseModel):
    status: str
    featured: Optional[bool] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v: str) -> str:
        v = v.upper()
        if v not in ("ACTIVE", "PENDING", "DELETED"):
            raise ValueError("Status must be one of ACTIVE, PENDING, DELETED")
        return v

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, max_length=140)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    featured: bool = False
    sort_order: int = 0
    parent_id: Optional[int] = None

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    featured: Optional[bool] = None
    sort_order: Optional[int] = None
    parent_id: Optional[int] = None

class CategoryReorderRequest(BaseModel):
    items: List[int]

class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=60)
    description: Optional[str] = None
    featured: bool = False

# Response Schemas
class UserPublic(BaseModel):
    id: int
    email: str
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class UserProfile(UserPublic):
    role: str
    status: str
    created_at: datetime
    last_login: Optional[datetime] = None
    login_count: int = 0

class UserBrief(BaseModel):
    id: int
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class Category(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    featured: bool
    sort_order: int
    parent_id: Optional[int] = None
    srefCount: int = 0

    model_config = ConfigDict(from_attributes=True)

class CategoryBrief(BaseModel):
    id: int
    name: str
    slug: str
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class Tag(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    featured: bool
    usage_count: int

    model_config = ConfigDict(from_attributes=True)

class SREFImage(BaseModel):
    id: int
    url: str
    image_order: int
    alt_text: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class SREF(BaseModel):
    id: int
    code: str
    title: str
    slug: str
    description: Optional[str] = None
    prompt_examples: Optional[List[str]] = None
    category: Optional[CategoryBrief] = None
    tags: List[Tag] = []
    images: List[SREFImage] = []
    popularity_score: float = 0
    view_count: int = 0
    like_count: int = 0
    favorite_count: int = 0
    premium: bool
    featured: bool
    status: str
    created_at: datetime
    updated_at: datetime
    submitted_by: Optional[UserBrief] = None

    model_config = ConfigDict(from_attributes=True)

class SREFBrief(BaseModel):
    id: int
    code: str
    title: str
    status: str
    view_count: int = 0
    like_count: int = 0
    favorite_count: int = 0
    images: List[SREFImage] = []

    model_config = ConfigDict(from_attributes=True)

class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int
    user: UserPublic
