# backend/routes/model_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from backend.database.store import DomainStore, get_store
from backend.models.llm_model import ModelIn, ModelOut, ModelUpdate
from backend.routes.provider_routes import get_owned_provider
from backend.utils.jwt_handler import require_user

router = APIRouter(prefix="/api/models", tags=["Models"])

logger = logging.getLogger("model_routes")


def get_owned_model(store: DomainStore, model_id: str, user: dict) -> dict:
    """A model is owned through its provider."""
    model = store.get_model(model_id)
    if not model:
        raise HTTPException(status_code=404, detail="Model not found")
    provider = store.get_provider(model["provider_id"])
    if not provider or provider.get("user_id") != user["user_id"]:
        raise HTTPException(status_code=404, detail="Model not found")
    return model


#--- every model of every provider the user owns ---#
@router.get("", response_model=List[ModelOut])
def list_models(user=Depends(require_user), store: DomainStore = Depends(get_store)):
    out = []
    for provider in store.get_providers(user["user_id"]):
        out.extend(store.get_models(provider["id"]))
    return out


@router.post("", response_model=ModelOut, status_code=201)
def create_model(body: ModelIn, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    provider = get_owned_provider(store, body.provider_id, user)
    data = body.model_dump()
    data["provider_id"] = provider["id"]
    model = store.create_model(data)
    logger.info(f"Model {model['model_id']} registered under provider {provider['id']}")
    return model


@router.patch("/{model_id}", response_model=ModelOut)
def update_model(
    model_id: str,
    body: ModelUpdate,
    user=Depends(require_user),
    store: DomainStore = Depends(get_store),
):
    model = get_owned_model(store, model_id, user)
    return store.update_model(model["id"], body.model_dump(exclude_unset=True))


@router.delete("/{model_id}", status_code=204)
def delete_model(model_id: str, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    model = get_owned_model(store, model_id, user)
    store.delete_model(model["id"])
    return Response(status_code=204)
