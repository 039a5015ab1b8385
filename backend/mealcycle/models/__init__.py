# Import all models here
from mealcycle.models.user_profile import UserProfile
from mealcycle.models.meal_plan import MealPlan
from mealcycle.models.recipe import Recipe
