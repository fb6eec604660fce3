from pathlib import Path
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from config import MAX_IMAGE_BYTES
from models.common_models import ImageList, UploadResponse
from services.asset_pool import AssetPool
from services.dependencies import get_asset_pool
from services.file_upload_service import IMAGE_MIME_PREFIX, save_uploaded_file

router = APIRouter(prefix="/showcomposer/api", tags=["upload"])

@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    image: UploadFile = File(...),
    pool: AssetPool = Depends(get_asset_pool),
):
    uploaded = await run_in_threadpool(
        save_uploaded_file, image, pool.root, [IMAGE_MIME_PREFIX], MAX_IMAGE_BYTES
    )
    file_name = Path(uploaded.path).name
    return UploadResponse(filePath=f"/uploads/{file_name}", fileName=file_name)

@router.get("/images", response_model=ImageList)
async def list_images(pool: AssetPool = Depends(get_asset_pool)):
    images = await run_in_threadpool(pool.list_images)
    return ImageList(images=images)
