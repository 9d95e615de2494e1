"""Example target shapes used by the command line demo."""
from datetime import date
from typing import Dict, List, Type

from pydantic import BaseModel


class Person(BaseModel):
    name: str


class People(BaseModel):
    people: List[Person]


class FullMoons(BaseModel):
    dates: List[date]


DEMO_SHAPES: Dict[str, Type[BaseModel]] = {
    "person": Person,
    "people": People,
    "full-moons": FullMoons,
}

# (shape, prompt) pairs run by `shapequery demo`
DEMO_PROMPTS = [
    (Person, "return a random person"),
    (People, "return a list of 3 random people"),
    (FullMoons, "return all full moons in 2024 for Denver, Colorado"),
]
