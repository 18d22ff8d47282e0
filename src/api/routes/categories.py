"""Category CRUD and reorder endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_assignment_store, get_category_store
from api.models.responses import (
    CategoryCreateRequest,
    CategoryListResponse,
    CategoryMoveRequest,
    CategoryOrderRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    ErrorCodes,
)
from services.categories import (
    AssignmentStore,
    CategoryNotFoundError,
    CategoryStore,
    PersistenceError,
)

router = APIRouter(prefix="/v1/categories")


def _not_found(e: CategoryNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": str(e), "code": ErrorCodes.NOT_FOUND, "details": []},
    )


def _invalid(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": str(e), "code": ErrorCodes.INVALID_REQUEST, "details": []},
    )


def _unsaved(e: PersistenceError) -> HTTPException:
    # In-memory state already changed; the client should flag it as unsaved
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "Categories could not be saved",
            "code": ErrorCodes.PERSISTENCE_ERROR,
            "details": [str(e)],
        },
    )


def _listing(store: CategoryStore) -> CategoryListResponse:
    return CategoryListResponse(
        categories=[CategoryResponse.from_category(c) for c in store.list()],
        has_unsaved_changes=store.has_unsaved_changes,
    )


@router.get("", response_model=CategoryListResponse)
def list_categories(store: CategoryStore = Depends(get_category_store)):
    """Categories in display order."""
    return _listing(store)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryCreateRequest, store: CategoryStore = Depends(get_category_store)
):
    try:
        category = store.add(body.name, body.color)
    except ValueError as e:
        raise _invalid(e)
    except PersistenceError as e:
        raise _unsaved(e)
    return CategoryResponse.from_category(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    body: CategoryUpdateRequest,
    store: CategoryStore = Depends(get_category_store),
):
    """Rename and/or recolor a category."""
    try:
        category = store.update(category_id, **body.model_dump(exclude_unset=True))
    except CategoryNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise _invalid(e)
    except PersistenceError as e:
        raise _unsaved(e)
    return CategoryResponse.from_category(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    store: CategoryStore = Depends(get_category_store),
    assignment_store: AssignmentStore = Depends(get_assignment_store),
):
    """Remove a category and every event assignment that points at it."""
    try:
        store.remove(category_id)
        assignment_store.remove_category(category_id)
    except CategoryNotFoundError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _unsaved(e)


@router.put("/order", response_model=CategoryListResponse)
def reorder_categories(
    body: CategoryOrderRequest, store: CategoryStore = Depends(get_category_store)
):
    """Replace the category order with the given id sequence."""
    try:
        new_order = [store.get(category_id) for category_id in body.category_ids]
        store.reorder(new_order)
    except CategoryNotFoundError as e:
        raise _not_found(e)
    except ValueError as e:
        raise _invalid(e)
    except PersistenceError as e:
        raise _unsaved(e)
    return _listing(store)


@router.post("/move", response_model=CategoryListResponse)
def move_category(body: CategoryMoveRequest, store: CategoryStore = Depends(get_category_store)):
    """Drag-and-drop reorder: move the category at source_index to destination_index."""
    try:
        store.move(body.source_index, body.destination_index)
    except IndexError as e:
        raise _invalid(e)
    except PersistenceError as e:
        raise _unsaved(e)
    return _listing(store)


@router.post("/save", response_model=CategoryListResponse)
def save_categories(store: CategoryStore = Depends(get_category_store)):
    """Retry persisting the current list after a failed write."""
    try:
        store.save()
    except PersistenceError as e:
        raise _unsaved(e)
    return _listing(store)
