from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.utils import timezone
from rest_framework import exceptions, serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()


class CustomerRegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for customer self-registration.
    Back-office, member and logistic accounts are created by admins.
    """
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = (
            'id', 'username', 'email', 'password', 'password_confirm',
            'first_name', 'last_name', 'contact_number'
        )
        read_only_fields = ('id',)

    def validate(self, attrs):
        """Validate that passwords match."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError(
                {"password": "Password fields didn't match."}
            )
        return attrs

    def validate_contact_number(self, value):
        """Philippine mobile numbers: 09XXXXXXXXX or +639XXXXXXXXX."""
        number = value.replace(' ', '').replace('-', '')
        if number and not (
            (number.startswith('09') and len(number) == 11 and number.isdigit()) or
            (number.startswith('+639') and len(number) == 13 and number[1:].isdigit())
        ):
            raise serializers.ValidationError(
                "Invalid contact number format. Use: 09XXXXXXXXX or +639XXXXXXXXX"
            )
        return number

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')

        user = User(type=User.UserType.CUSTOMER, **validated_data)
        user.set_password(password)
        user.save()

        return user


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for user details.
    Used for retrieving and updating the authenticated user's profile.
    """
    full_name = serializers.CharField(source='get_full_name', read_only=True)
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = User
        fields = (
            'id', 'username', 'email', 'first_name', 'last_name', 'full_name',
            'type', 'type_display', 'contact_number', 'assigned_area',
            'active', 'date_joined', 'last_login_at'
        )
        read_only_fields = (
            'id', 'full_name', 'type', 'type_display', 'active',
            'date_joined', 'last_login_at'
        )


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact representation embedded in order and stock payloads."""
    name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = User
        fields = ('id', 'name', 'email', 'contact_number')
        read_only_fields = fields


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds the user summary to the token pair and refuses deactivated co-op accounts."""

    def validate(self, attrs):
        data = super().validate(attrs)

        if not self.user.active:
            raise exceptions.AuthenticationFailed('This account has been deactivated.')

        data['user'] = {
            'id': self.user.id,
            'username': self.user.username,
            'email': self.user.email,
            'type': self.user.type,
            'full_name': self.user.get_full_name(),
        }

        # Update last login
        self.user.last_login_at = timezone.now()
        self.user.save(update_fields=['last_login_at'])

        return data
