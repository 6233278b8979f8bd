from hotelsite.db.models.activity import Activity
from hotelsite.db.models.blog_post import BlogPost
from hotelsite.db.models.meal import Meal
from hotelsite.db.models.media_asset import MediaAsset, MediaType, SourceType
from hotelsite.db.models.package import Package
from hotelsite.db.models.page import Page
from hotelsite.db.models.room_type import RoomType
from hotelsite.db.models.spa_service import SpaService

__all__ = ["Activity", "BlogPost", "Meal", "MediaAsset", "MediaType", "Package", "Page", "RoomType", "SourceType", "SpaService"]
