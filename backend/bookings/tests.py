import threading
from datetime import timedelta
from decimal import Decimal

from django.core.management import call_command
from django.db import connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature
from django.utils import timezone
from rest_framework.test import APIRequestFactory, force_authenticate
from unittest.mock import patch

from accounts.models import User
from drivers.models import Vehicle
from routes.models import Route, VirtualStop
from services.booking_management import (
	booked_seats,
	check_capacity,
	cancel_booking,
	complete_ride,
	confirm_booking,
	create_booking,
	get_booking,
	get_driver_bookings,
	get_route_active_bookings,
	get_upcoming_rider_bookings,
	start_ride,
	submit_rating,
)
from services.exceptions import (
	CapacityExceededError,
	ConflictError,
	IllegalStateError,
	InvalidInputError,
	InvalidRatingError,
	LocationTooFarError,
	NotFoundError,
	UnauthorizedError,
)
from services.matching import add_virtual_stop, create_route, publish_route
from services.pricing import compute_fare

from .models import Booking, BookingStatus
from .views import (
	BookingCancelView,
	BookingConfirmView,
	BookingCreateView,
	BookingDetailView,
	BookingRateView,
	RouteBookingsView,
)

NORTH_SOUTH = [(7.49, 9.0), (7.49, 9.1)]


class BookingTestMixin:
	def setUp(self):
		self.driver = User.objects.create_user(username='driver', password='pass1234', roles='DRIVER')
		self.rider = User.objects.create_user(username='rider', password='pass1234', roles='RIDER')
		self.route = self.make_route()
		self.pickup_time = timezone.now() + timedelta(days=1)

	def make_route(self, vehicle=None):
		route = create_route(
			self.driver,
			'Lugbe - Central',
			NORTH_SOUTH,
			vehicle_id=vehicle.id if vehicle else None,
		)
		return publish_route(route.id, self.driver)

	def book(self, rider=None, passengers=1, route=None, when=None, **overrides):
		kwargs = dict(
			rider=rider or self.rider,
			route_id=(route or self.route).id,
			pickup_latitude=9.02,
			pickup_longitude=7.49,
			dropoff_latitude=9.08,
			dropoff_longitude=7.49,
			scheduled_pickup_time=when or self.pickup_time,
			passenger_count=passengers,
		)
		kwargs.update(overrides)
		return create_booking(**kwargs).booking


class CreateBookingTests(BookingTestMixin, TestCase):
	def test_creates_pending_booking_with_fare(self):
		booking = self.book()

		self.assertEqual(booking.status, BookingStatus.PENDING)
		self.assertRegex(booking.reference_number, r'^MS-[A-Z2-9]{8}$')
		self.assertEqual(booking.distance_km, Decimal('6.67'))
		self.assertEqual(booking.fare_amount, Decimal('533.50'))
		self.assertEqual(booking.fare_amount, compute_fare(booking.distance_km, 1))
		self.assertEqual(booking.estimated_dropoff_time, self.pickup_time + timedelta(minutes=13))

	def test_fare_scales_with_passengers(self):
		booking = self.book(passengers=2)

		self.assertEqual(booking.fare_amount, Decimal('1067.00'))

	def test_zero_passengers_treated_as_one(self):
		booking = self.book(passengers=0)

		self.assertEqual(booking.passenger_count, 1)

	def test_result_message(self):
		result = create_booking(
			rider=self.rider,
			route_id=self.route.id,
			pickup_latitude=9.02,
			pickup_longitude=7.49,
			dropoff_latitude=9.08,
			dropoff_longitude=7.49,
			scheduled_pickup_time=self.pickup_time,
		)

		self.assertTrue(result.success)
		self.assertEqual(result.message, 'Booking request sent to the driver')
		self.assertEqual(result.extra, {'currency': 'NGN'})

	def test_nearest_stops_attached(self):
		add_virtual_stop(self.route.id, self.driver, 'Start', 9.0, 7.49)
		add_virtual_stop(self.route.id, self.driver, 'End', 9.1, 7.49)

		booking = self.book()

		self.assertEqual(booking.pickup_stop.name, 'Start')
		self.assertEqual(booking.dropoff_stop.name, 'End')

	def test_pickup_too_far_rejected(self):
		with self.assertRaisesMessage(LocationTooFarError, 'Pickup location is too far from route (max 500m)'):
			self.book(pickup_longitude=7.4955, pickup_latitude=9.05)

		self.assertEqual(Booking.objects.count(), 0)

	def test_dropoff_too_far_rejected(self):
		with self.assertRaisesMessage(LocationTooFarError, 'Dropoff location'):
			self.book(dropoff_longitude=7.4955)

	def test_past_pickup_rejected(self):
		with self.assertRaises(InvalidInputError):
			self.book(when=timezone.now() - timedelta(minutes=5))

	def test_unpublished_route_rejected(self):
		draft = create_route(self.driver, 'Draft', NORTH_SOUTH)

		with self.assertRaisesMessage(InvalidInputError, 'Route is not available'):
			self.book(route=draft)

	def test_missing_route(self):
		with self.assertRaises(NotFoundError):
			self.book(route_id=99999)

	def test_requires_rider_role(self):
		with self.assertRaises(UnauthorizedError):
			self.book(rider=self.driver)

		self.rider.is_active = False
		self.rider.save()
		with self.assertRaises(UnauthorizedError):
			self.book()

	def test_driver_cannot_book_own_route(self):
		self.driver.add_role(User.RIDER)
		self.driver.save()

		with self.assertRaisesMessage(InvalidInputError, 'Drivers cannot book their own route'):
			self.book(rider=self.driver)

	def test_too_many_passengers(self):
		with self.assertRaises(InvalidInputError):
			self.book(passengers=11)


class CapacityTests(BookingTestMixin, TestCase):
	def test_default_capacity_blocks_second_booking(self):
		self.book(passengers=3)

		with self.assertRaisesMessage(CapacityExceededError, 'Route is full. Available seats: 1, Requested: 3'):
			self.book(passengers=3)

		self.assertEqual(Booking.objects.count(), 1)

	def test_route_vehicle_capacity(self):
		vehicle = Vehicle.objects.create(
			owner=self.driver, make='Toyota', model='HiAce', year=2020,
			color='White', license_plate='ABJ-001', capacity=2,
		)
		route = self.make_route(vehicle=vehicle)

		self.book(route=route, passengers=2)
		with self.assertRaises(CapacityExceededError):
			self.book(route=route, passengers=1)

	def test_driver_largest_vehicle_used_when_route_has_none(self):
		Vehicle.objects.create(
			owner=self.driver, make='Toyota', model='HiAce', year=2020,
			color='White', license_plate='ABJ-002', capacity=14,
		)

		self.book(passengers=10)
		self.book(passengers=4)
		self.assertEqual(booked_seats(self.route, self.pickup_time), 14)

	def test_cancelled_bookings_release_seats(self):
		booking = self.book(passengers=3)
		cancel_booking(booking.id, self.rider)

		self.book(passengers=3)

	def test_other_days_do_not_count(self):
		self.book(passengers=3)

		self.book(passengers=3, when=self.pickup_time + timedelta(days=2))

	def test_confirm_rechecks_capacity(self):
		booking = self.book(passengers=3)
		Vehicle.objects.create(
			owner=self.driver, make='Keke', model='RE', year=2019,
			color='Yellow', license_plate='ABJ-003', capacity=2,
			vehicle_type='TRICYCLE',
		)

		with self.assertRaises(CapacityExceededError):
			confirm_booking(booking.id, self.driver)

		booking.refresh_from_db()
		self.assertEqual(booking.status, BookingStatus.PENDING)


class RouteLockTests(BookingTestMixin, TestCase):
	def track_lock_and_capacity(self):
		calls = []
		lock = Route.objects.select_for_update

		def locking(*args, **kwargs):
			calls.append('lock')
			return lock(*args, **kwargs)

		def counting(*args, **kwargs):
			calls.append('capacity')
			return check_capacity(*args, **kwargs)

		return calls, (
			patch.object(Route.objects, 'select_for_update', side_effect=locking),
			patch('services.booking_management.booking_lifecycle.check_capacity', side_effect=counting),
		)

	def test_create_locks_route_before_counting_seats(self):
		calls, (lock_patch, capacity_patch) = self.track_lock_and_capacity()

		with lock_patch, capacity_patch:
			self.book(passengers=3)

		self.assertEqual(calls, ['lock', 'capacity'])

	def test_confirm_locks_route_before_counting_seats(self):
		booking = self.book(passengers=3)
		calls, (lock_patch, capacity_patch) = self.track_lock_and_capacity()

		with lock_patch, capacity_patch:
			confirm_booking(booking.id, self.driver)

		self.assertEqual(calls, ['lock', 'capacity'])


@skipUnlessDBFeature('has_select_for_update')
class ConcurrentBookingTests(BookingTestMixin, TransactionTestCase):
	def create_in_thread(self, barrier, outcomes):
		try:
			barrier.wait()
			self.book(passengers=3)
			outcomes.append('booked')
		except CapacityExceededError:
			outcomes.append('full')
		finally:
			connection.close()

	def test_two_riders_race_for_last_seats(self):
		barrier = threading.Barrier(2)
		outcomes = []
		threads = [threading.Thread(target=self.create_in_thread, args=(barrier, outcomes)) for _ in range(2)]

		for thread in threads:
			thread.start()
		for thread in threads:
			thread.join()

		self.assertEqual(sorted(outcomes), ['booked', 'full'])
		self.assertEqual(Booking.objects.filter(route=self.route).count(), 1)


class LifecycleTests(BookingTestMixin, TestCase):
	def test_full_ride(self):
		booking = self.book()

		confirm_booking(booking.id, self.driver)
		start_ride(booking.id, self.driver)
		result = complete_ride(booking.id, self.driver)

		booking.refresh_from_db()
		self.assertEqual(booking.status, BookingStatus.COMPLETED)
		self.assertIsNotNone(booking.confirmed_at)
		self.assertIsNotNone(booking.actual_pickup_time)
		self.assertIsNotNone(booking.completed_at)
		self.assertEqual(result.extra, {'awaiting_ratings': True})

	def test_out_of_order_transitions_rejected(self):
		booking = self.book()

		with self.assertRaises(IllegalStateError):
			start_ride(booking.id, self.driver)
		with self.assertRaises(IllegalStateError):
			complete_ride(booking.id, self.driver)

		confirm_booking(booking.id, self.driver)
		with self.assertRaises(IllegalStateError):
			confirm_booking(booking.id, self.driver)
		with self.assertRaises(IllegalStateError):
			complete_ride(booking.id, self.driver)

		start_ride(booking.id, self.driver)
		with self.assertRaises(IllegalStateError):
			cancel_booking(booking.id, self.rider)

	def test_only_route_driver_can_drive(self):
		booking = self.book()
		other = User.objects.create_user(username='other', password='pass1234', roles='DRIVER')

		with self.assertRaises(UnauthorizedError):
			confirm_booking(booking.id, other)

	def test_cancel_by_rider(self):
		booking = self.book()

		result = cancel_booking(booking.id, self.rider, reason='Plans changed')

		booking.refresh_from_db()
		self.assertEqual(booking.status, BookingStatus.CANCELLED)
		self.assertEqual(booking.cancellation_reason, 'Plans changed')
		self.assertEqual(booking.cancelled_by, self.rider)
		self.assertEqual(result.extra['cancelled_by_role'], 'rider')

	def test_cancel_by_driver_default_reason(self):
		booking = self.book()
		confirm_booking(booking.id, self.driver)

		result = cancel_booking(booking.id, self.driver)

		self.assertEqual(result.booking.cancellation_reason, 'No reason provided')
		self.assertEqual(result.extra['cancelled_by_role'], 'driver')

	def test_cancel_twice_rejected(self):
		booking = self.book()
		cancel_booking(booking.id, self.rider)

		with self.assertRaises(IllegalStateError):
			cancel_booking(booking.id, self.rider)

	def test_stranger_cannot_cancel(self):
		booking = self.book()
		stranger = User.objects.create_user(username='stranger', password='pass1234', roles='RIDER')

		with self.assertRaises(UnauthorizedError):
			cancel_booking(booking.id, stranger)

	def test_unknown_booking(self):
		with self.assertRaises(NotFoundError):
			confirm_booking('not-a-uuid', self.driver)
		with self.assertRaises(NotFoundError):
			get_booking('00000000-0000-0000-0000-000000000000')

	@patch('services.booking_management.booking_lifecycle.generate_reference_number')
	def test_reference_collision_retries(self, mock_reference):
		mock_reference.side_effect = ['MS-AAAAAAAA', 'MS-AAAAAAAA', 'MS-BBBBBBBB']

		first = self.book()
		second = self.book()

		self.assertEqual(first.reference_number, 'MS-AAAAAAAA')
		self.assertEqual(second.reference_number, 'MS-BBBBBBBB')
		self.assertEqual(mock_reference.call_count, 3)

	@patch('services.booking_management.booking_lifecycle.generate_reference_number', return_value='MS-AAAAAAAA')
	def test_reference_collisions_give_up(self, mock_reference):
		self.book()

		with self.assertRaises(ConflictError):
			self.book()

		self.assertEqual(Booking.objects.count(), 1)


class RatingTests(BookingTestMixin, TestCase):
	def setUp(self):
		super().setUp()
		self.booking = self.book()

	def finish_ride(self):
		confirm_booking(self.booking.id, self.driver)
		start_ride(self.booking.id, self.driver)
		complete_ride(self.booking.id, self.driver)

	def test_rider_rates_driver(self):
		self.finish_ride()

		submit_rating(self.booking.id, self.rider, 5, feedback='Smooth')

		self.driver.refresh_from_db()
		self.booking.refresh_from_db()
		self.assertEqual(self.driver.rating, Decimal('5.00'))
		self.assertEqual(self.driver.total_ratings, 1)
		self.assertEqual(self.booking.rider_rating, 5)
		self.assertEqual(self.booking.rider_feedback, 'Smooth')

	def test_driver_rates_rider(self):
		self.finish_ride()

		submit_rating(self.booking.id, self.driver, 1)

		self.rider.refresh_from_db()
		self.assertEqual(self.rider.rating, Decimal('1.00'))
		self.assertEqual(Booking.objects.get(pk=self.booking.pk).driver_rating, 1)

	def test_out_of_range_rejected(self):
		self.finish_ride()

		for rating in (0, 6):
			with self.assertRaises(InvalidRatingError):
				submit_rating(self.booking.id, self.rider, rating)

		self.driver.refresh_from_db()
		self.assertEqual(self.driver.total_ratings, 0)

	def test_rate_once(self):
		self.finish_ride()
		submit_rating(self.booking.id, self.rider, 4)

		with self.assertRaisesMessage(IllegalStateError, 'You have already rated this ride'):
			submit_rating(self.booking.id, self.rider, 5)

	def test_only_completed_rides(self):
		with self.assertRaises(IllegalStateError):
			submit_rating(self.booking.id, self.rider, 5)

	def test_outsider_rejected(self):
		self.finish_ride()
		stranger = User.objects.create_user(username='stranger', password='pass1234', roles='RIDER')

		with self.assertRaisesMessage(UnauthorizedError, 'User not part of this booking'):
			submit_rating(self.booking.id, stranger, 5)


class BookingQueryTests(BookingTestMixin, TestCase):
	def test_upcoming_excludes_cancelled(self):
		keep = self.book()
		dropped = self.book()
		cancel_booking(dropped.id, self.rider)

		self.assertEqual(list(get_upcoming_rider_bookings(self.rider)), [keep])

	def test_driver_bookings_filter(self):
		pending = self.book()
		confirmed = self.book()
		confirm_booking(confirmed.id, self.driver)

		self.assertEqual(list(get_driver_bookings(self.driver, 'PENDING')), [pending])
		self.assertEqual(list(get_route_active_bookings(self.route.id)), [confirmed])

		with self.assertRaises(InvalidInputError):
			get_driver_bookings(self.driver, 'BOGUS')

	def test_get_booking_limited_to_participants(self):
		booking = self.book()
		stranger = User.objects.create_user(username='stranger', password='pass1234', roles='RIDER')

		self.assertEqual(get_booking(booking.id, user=self.driver), booking)
		with self.assertRaises(UnauthorizedError):
			get_booking(booking.id, user=stranger)


class BookingApiTests(BookingTestMixin, TestCase):
	def setUp(self):
		super().setUp()
		self.factory = APIRequestFactory()

	def test_create_booking_endpoint(self):
		request = self.factory.post('/api/bookings/', {
			'route_id': self.route.id,
			'pickup_latitude': 9.02,
			'pickup_longitude': 7.49,
			'dropoff_latitude': 9.08,
			'dropoff_longitude': 7.49,
			'scheduled_pickup_time': self.pickup_time.isoformat(),
			'passenger_count': 2,
		}, format='json')
		force_authenticate(request, user=self.rider)
		response = BookingCreateView.as_view()(request)

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['booking']['status'], 'PENDING')
		self.assertEqual(response.data['booking']['fare_amount'], '1067.00')
		self.assertEqual(response.data['booking']['allowed_actions'], ['confirm', 'cancel'])
		self.assertEqual(response.data['currency'], 'NGN')

	def test_capacity_error_maps_to_conflict(self):
		self.book(passengers=4)

		request = self.factory.post('/api/bookings/', {
			'route_id': self.route.id,
			'pickup_latitude': 9.02,
			'pickup_longitude': 7.49,
			'dropoff_latitude': 9.08,
			'dropoff_longitude': 7.49,
			'scheduled_pickup_time': self.pickup_time.isoformat(),
		}, format='json')
		force_authenticate(request, user=self.rider)
		response = BookingCreateView.as_view()(request)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['code'], 'capacity_exceeded')
		self.assertEqual(response.data['details']['available_seats'], 0)

	def test_driver_cannot_create_booking(self):
		request = self.factory.post('/api/bookings/', {}, format='json')
		force_authenticate(request, user=self.driver)
		response = BookingCreateView.as_view()(request)

		self.assertEqual(response.status_code, 403)

	def test_confirm_endpoint(self):
		booking = self.book()

		request = self.factory.post('/api/bookings/%s/confirm/' % booking.id)
		force_authenticate(request, user=self.driver)
		response = BookingConfirmView.as_view()(request, booking_id=booking.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['booking']['status'], 'CONFIRMED')

	def test_confirm_twice_is_conflict(self):
		booking = self.book()
		confirm_booking(booking.id, self.driver)

		request = self.factory.post('/api/bookings/%s/confirm/' % booking.id)
		force_authenticate(request, user=self.driver)
		response = BookingConfirmView.as_view()(request, booking_id=booking.id)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.data['code'], 'illegal_state')

	def test_invalid_rating_is_bad_request(self):
		booking = self.book()

		request = self.factory.post('/api/bookings/%s/rate/' % booking.id, {'rating': 6}, format='json')
		force_authenticate(request, user=self.rider)
		response = BookingRateView.as_view()(request, booking_id=booking.id)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['code'], 'invalid_rating')

	def test_cancel_response_names_who_cancelled(self):
		booking = self.book()

		request = self.factory.post('/api/bookings/%s/cancel/' % booking.id, {'reason': 'Car trouble'}, format='json')
		force_authenticate(request, user=self.driver)
		response = BookingCancelView.as_view()(request, booking_id=booking.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['booking']['cancelled_by']['id'], self.driver.id)
		self.assertEqual(response.data['booking']['cancellation_reason'], 'Car trouble')
		self.assertEqual(response.data['cancelled_by_role'], 'driver')

	def test_rating_response_includes_feedback(self):
		booking = self.book()
		confirm_booking(booking.id, self.driver)
		start_ride(booking.id, self.driver)
		complete_ride(booking.id, self.driver)

		request = self.factory.post(
			'/api/bookings/%s/rate/' % booking.id, {'rating': 5, 'feedback': 'Smooth ride'}, format='json'
		)
		force_authenticate(request, user=self.rider)
		response = BookingRateView.as_view()(request, booking_id=booking.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['booking']['rider_rating'], 5)
		self.assertEqual(response.data['booking']['rider_feedback'], 'Smooth ride')
		self.assertIsNone(response.data['booking']['driver_feedback'])
		self.assertIsNone(response.data['booking']['cancelled_by'])

	def test_detail_hidden_from_strangers(self):
		booking = self.book()
		stranger = User.objects.create_user(username='stranger', password='pass1234', roles='RIDER')

		request = self.factory.get('/api/bookings/%s/' % booking.id)
		force_authenticate(request, user=stranger)
		response = BookingDetailView.as_view()(request, booking_id=booking.id)

		self.assertEqual(response.status_code, 403)

	def test_route_bookings_status_filter(self):
		self.book()

		request = self.factory.get('/api/bookings/route/%d/' % self.route.id, {'status': 'pending'})
		force_authenticate(request, user=self.driver)
		response = RouteBookingsView.as_view()(request, route_id=self.route.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)

		request = self.factory.get('/api/bookings/route/%d/' % self.route.id)
		force_authenticate(request, user=self.driver)
		response = RouteBookingsView.as_view()(request, route_id=self.route.id)

		self.assertEqual(response.data['count'], 0)


class SeedDemoDataTests(TestCase):
	def test_seed_is_idempotent(self):
		call_command('seed_demo_data')
		call_command('seed_demo_data')

		self.assertEqual(User.objects.filter(username__startswith='demo_').count(), 2)
		self.assertEqual(Vehicle.objects.filter(license_plate='DEMO-001').count(), 1)

		route = Route.objects.get(name='Lugbe - Central Area')
		self.assertTrue(route.is_published)
		self.assertEqual(route.vehicle.capacity, 14)
		self.assertEqual(VirtualStop.objects.filter(route=route).count(), 3)
