from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from simcal.database import get_db
from simcal.dependencies import get_manager_user
from simcal.models.user import User
from simcal.schemas.employee import EmployeeCreateRequest
from simcal.schemas.common import success_response
from simcal.services.employee_service import employee_service

router = APIRouter(prefix="/employees")


# GET /employees: manager only, own department
@router.get("", status_code=status.HTTP_200_OK, summary="List employees of your department")
def list_employees(
    db:      Session = Depends(get_db),
    manager: User    = Depends(get_manager_user),
):
    return success_response("Employees retrieved successfully", employee_service.list_employees(db, manager))


# POST /employees: manager only
@router.post("", status_code=status.HTTP_201_CREATED, summary="Add a P1–P4 employee")
def add_employee(
    body:    EmployeeCreateRequest,
    db:      Session = Depends(get_db),
    manager: User    = Depends(get_manager_user),
):
    return success_response("Employee added successfully", employee_service.add_employee(db, body, manager))


# GET /employees/role-requests: manager only, own department
@router.get("/role-requests", status_code=status.HTTP_200_OK, summary="List role change requests")
def list_role_requests(
    db:      Session = Depends(get_db),
    manager: User    = Depends(get_manager_user),
):
    return success_response("Role requests retrieved", employee_service.list_role_requests(db, manager))


# POST /employees/role-requests/{id}/approve: manager only
@router.post("/role-requests/{user_id}/approve", status_code=status.HTTP_200_OK,
             summary="Approve a role change request")
def approve_role_request(
    user_id: int,
    db:      Session = Depends(get_db),
    manager: User    = Depends(get_manager_user),
):
    return success_response("Role request approved successfully",
                            employee_service.approve_role_request(db, user_id, manager))


# POST /employees/role-requests/{id}/reject: manager only
@router.post("/role-requests/{user_id}/reject", status_code=status.HTTP_200_OK,
             summary="Reject a role change request")
def reject_role_request(
    user_id: int,
    db:      Session = Depends(get_db),
    manager: User    = Depends(get_manager_user),
):
    return success_response("Role request rejected successfully",
                            employee_service.reject_role_request(db, user_id, manager))
