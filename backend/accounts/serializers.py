from rest_framework import serializers
from django.contrib.auth import authenticate

from .models import User


class UserSerializer(serializers.ModelSerializer):
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "full_name",
            "phone_number",
            "roles",
            "rating",
            "total_ratings",
            "is_verified",
            "profile_image_url",
        ]
        read_only_fields = fields

    def get_roles(self, obj):
        return sorted(obj.role_set)


class UserBasicSerializer(serializers.ModelSerializer):
    """
    Basic user representation used inside booking and route responses.
    """
    class Meta:
        model = User
        fields = ["id", "username", "full_name", "phone_number", "rating"]


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=[User.RIDER, User.DRIVER]),
        allow_empty=False,
        default=[User.RIDER],
    )

    class Meta:
        model = User
        fields = ["username", "password", "email", "full_name", "phone_number", "roles"]

    def validate_email(self, value):
        if value and User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email already exists")
        return value

    def validate_phone_number(self, value):
        if value and User.objects.filter(phone_number=value).exists():
            raise serializers.ValidationError("Phone number already exists")
        return value or None

    def create(self, validated_data):
        roles = validated_data.pop("roles")

        user = User(
            username=validated_data["username"],
            email=validated_data.get("email", ""),
            full_name=validated_data.get("full_name", ""),
            phone_number=validated_data.get("phone_number"),
        )
        user.set_roles(set(roles))
        user.set_password(validated_data["password"])
        user.save()
        return user
