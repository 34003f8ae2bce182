"""
chefai package

Backend for the ChefAI recipe app. Run with:

    uvicorn chefai.main:app

Do NOT put runtime logic here.
"""
