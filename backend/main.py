from expense_budget.main import app
from expense_budget.core.config import settings
import uvicorn

if __name__ == "__main__":
    uvicorn.run("expense_budget.main:app", host=settings.HOST, port=settings.PORT, reload=True)
