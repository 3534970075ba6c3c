from fastapi import APIRouter, Depends, File, UploadFile

from src.storefront.api.http.deps import get_storage_service
from src.storefront.core.services.storage_service import PRODUCT_IMAGES, StorageService

router = APIRouter(prefix="/uploads", tags=["admin-uploads"])


@router.post("/product-image")
async def upload_product_image(
    file: UploadFile = File(...),
    storage: StorageService = Depends(get_storage_service),
) -> dict[str, str]:
    content = await file.read()
    stored = storage.save(
        PRODUCT_IMAGES,
        content,
        file.content_type,
        filename=file.filename,
        folder="products",
    )
    return {"url": stored.url}
