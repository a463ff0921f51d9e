"""Image upload and download routes."""

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.storage import get_storage
from app.api.middleware.auth import get_current_user
from app.api.schemas import ImageUploadResponse, RsData
from app.database import get_session
from app.domain.models import Member
from app.ports.storage import StoragePort
from app.services.image import ImageService, image_url

router = APIRouter(prefix="/api/v1/images", tags=["Images"])


@router.post("/upload", response_model=RsData[ImageUploadResponse], status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_session),
    storage: StoragePort = Depends(get_storage),
    _user: Member = Depends(get_current_user),
) -> RsData[ImageUploadResponse]:
    """Store an image; embed the returned url in curation content to attach it."""
    image = await ImageService(session, storage).upload(file)
    return RsData(
        code="201-1",
        msg="Image uploaded",
        data=ImageUploadResponse(image_name=image.image_name, url=image_url(image.image_name)),
    )


@router.get("/{image_name}")
async def get_image(
    image_name: str,
    session: AsyncSession = Depends(get_session),
    storage: StoragePort = Depends(get_storage),
) -> Response:
    content, content_type = await ImageService(session, storage).read(image_name)
    return Response(content=content, media_type=content_type)
