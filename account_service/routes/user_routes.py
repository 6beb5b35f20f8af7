from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from account_service.auth.dependencies import get_current_user, require_admin
from account_service.database import get_db
from account_service.models.user import User, UserRole
from account_service.schemas.responses import ApiResponse, Meta
from account_service.schemas.users import PUBLIC_FIELDS, UserOut, UserRegister, UserUpdate
from account_service.services import user_service
from account_service.services.user_service import to_user_out

router = APIRouter(tags=['users'])

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100


def parse_omit(omit: str | None) -> set[str]:
    if not omit:
        return set()
    requested = {field.strip() for field in omit.split(',') if field.strip()}
    unknown = requested - set(PUBLIC_FIELDS)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown fields in omit: {', '.join(sorted(unknown))}",
        )
    return requested


@router.post(
    '/register',
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[UserOut],
    response_model_exclude_unset=True,
)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    user = user_service.create_user(db, payload)
    return ApiResponse(message='User registered successfully!', data=user)


@router.get('/me', response_model=ApiResponse[UserOut], response_model_exclude_unset=True)
def me(current_user: User = Depends(get_current_user)):
    return ApiResponse(message='Profile retrieved successfully!', data=to_user_out(current_user))


@router.patch('/me', response_model=ApiResponse[UserOut], response_model_exclude_unset=True)
def update_me(
    payload: UserUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = user_service.update_user(db, current_user, payload, background_tasks)
    return ApiResponse(message='Profile updated successfully!', data=user)


@router.get('', response_model=ApiResponse[list[UserOut]], response_model_exclude_unset=True)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    search: str | None = Query(None),
    role: UserRole | None = Query(None),
    omit: str | None = Query(None, description='Comma separated fields to leave out'),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    filters = {'role': role.value if role else None}
    users, pagination = user_service.list_users(
        db,
        page=page,
        limit=limit,
        search=search.strip() if search else None,
        filters=filters,
        omit=parse_omit(omit),
    )
    return ApiResponse(
        message='Users retrieved successfully!',
        data=users,
        meta=Meta(pagination=pagination),
    )


@router.get('/count', response_model=ApiResponse[dict[str, int]], response_model_exclude_unset=True)
def count_users(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    counts = user_service.count_users_by_role(db)
    return ApiResponse(message='Users count retrieved successfully!', data=counts)


@router.get('/{user_id}', response_model=ApiResponse[UserOut], response_model_exclude_unset=True)
def get_user(
    user_id: int,
    omit: str | None = Query(None),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    user = user_service.get_user_by_id(db, user_id, omit=parse_omit(omit))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User doesn't exist")
    return ApiResponse(message='User retrieved successfully!', data=user)


@router.delete('/{user_id}', response_model=ApiResponse[UserOut], response_model_exclude_unset=True)
def delete_user(
    user_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    user = user_service.delete_user(db, user_id, background_tasks)
    return ApiResponse(message='User deleted successfully!', data=user)
