"""Shared pytest fixtures."""

import os

import boto3
import pytest
from moto import mock_aws

from shared.config import get_config
from shared.models import Character, KnownSpell, SpellSlot


@pytest.fixture(autouse=True)
def aws_credentials():
    """Fake AWS credentials so boto3 never reaches a real account."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "NarratorEngine"


@pytest.fixture
def env_setup():
    """Application environment variables, restored after the test."""
    saved = dict(os.environ)
    os.environ["TABLE_NAME"] = "test-table"
    os.environ["ENVIRONMENT"] = "test"
    os.environ["POWERTOOLS_LOG_LEVEL"] = "DEBUG"
    if hasattr(get_config, "_config"):
        delattr(get_config, "_config")
    yield
    os.environ.clear()
    os.environ.update(saved)
    if hasattr(get_config, "_config"):
        delattr(get_config, "_config")


@pytest.fixture
def dynamodb_table():
    """Single-table DynamoDB layout under moto."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = dynamodb.create_table(
            TableName="test-table",
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        yield table


@pytest.fixture
def wizard():
    """Level 3 wizard with a cantrip, two first-level spells and slots."""
    return Character(
        character_id="char-1",
        user_id="user-1",
        name="Elara",
        character_class="wizard",
        level=3,
        hp=18,
        max_hp=20,
        xp=900,
        known_spells=[
            KnownSpell(spell_name="Fire Bolt", spell_level=0),
            KnownSpell(spell_name="Magic Missile", spell_level=1),
            KnownSpell(spell_name="Shield", spell_level=1),
            KnownSpell(spell_name="Misty Step", spell_level=2),
        ],
        spell_slots={
            1: SpellSlot(current=4, maximum=4),
            2: SpellSlot(current=2, maximum=2),
        },
    )
