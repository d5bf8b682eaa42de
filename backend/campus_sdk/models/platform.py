# campus_sdk/models/platform.py
"""
Collection schemas for the eighteen platform collections.

Each entry is the plain-dict form accepted by SchemaRegistry.from_definitions:
required fields, declared field types, defaults and unique fields.
Defaults that must differ per record (timestamps, verification codes,
thread ids) are callables evaluated at creation time.
`id`, `uid`, `createdAt` and `updatedAt` are stamped by the RecordStore.
"""
import uuid

from campus_sdk.core.timeutil import utc_now_iso


def fields(**groups: str) -> dict:
    """
    Build a field -> type map from space-separated names per type tag.
    fields(string="title code", number="credits") -> {"title": "string", ...}
    """
    return {name: tag for tag, names in groups.items() for name in names.split()}


def new_uuid() -> str:
    return str(uuid.uuid4())


RECORD = "id uid"
STAMPS = "createdAt updatedAt"


PLATFORM_SCHEMAS = {
    "users": {
        "required": ["email", "firstName", "lastName", "role"],
        "unique": ["email"],
        "types": fields(
            string=f"{RECORD} email passwordHash firstName lastName role avatar bio phone address "
                   "dateOfBirth gender nationality status lastLogin",
            object="emergencyContact academicInfo financialInfo preferences",
            boolean="verified twoFactorEnabled",
            date=STAMPS,
        ),
        "defaults": {
            "role": "student",
            "preferences": {
                "theme": "light",
                "language": "en",
                "timezone": "UTC",
                "notifications": {"email": True, "push": True, "sms": False},
            },
            "status": "active",
            "verified": False,
            "twoFactorEnabled": False,
        },
    },

    "courses": {
        "required": ["title", "code", "instructorId", "category", "level", "credits"],
        "types": fields(
            string=f"{RECORD} title description code instructorId instructorName category department "
                   "level thumbnail currency language difficulty status forumId studyGroupId",
            number="credits duration maxStudents currentEnrollment price rating reviewCount",
            array="prerequisites corequisites learningObjectives syllabus schedule resources tags",
            object="assessmentStructure",
            date=f"startDate endDate enrollmentDeadline {STAMPS}",
        ),
        "defaults": {
            "currentEnrollment": 0,
            "prerequisites": [],
            "corequisites": [],
            "learningObjectives": [],
            "syllabus": [],
            "schedule": [],
            "resources": [],
            "tags": [],
            "price": 0,
            "currency": "USD",
            "language": "en",
            "difficulty": "beginner",
            "rating": 0,
            "reviewCount": 0,
            "status": "draft",
        },
    },

    "lessons": {
        "required": ["title", "courseId", "content", "contentType"],
        "types": fields(
            string=f"{RECORD} courseId moduleId title description content contentType videoUrl "
                   "videoTranscript difficulty",
            number="duration order",
            array="resources prerequisites learningObjectives tags interactiveElements",
            object="quiz assignment",
            boolean="isPreview published",
            date=STAMPS,
        ),
        "defaults": {
            "contentType": "text",
            "duration": 0,
            "order": 0,
            "resources": [],
            "prerequisites": [],
            "learningObjectives": [],
            "tags": [],
            "difficulty": "easy",
            "isPreview": False,
            "published": False,
            "interactiveElements": [],
        },
    },

    "assignments": {
        "required": ["title", "courseId", "instructions", "type", "maxPoints", "dueDate"],
        "types": fields(
            string=f"{RECORD} courseId lessonId title description instructions type",
            number="maxPoints passingScore timeLimit attempts lateSubmissionPenalty maxGroupSize",
            array="rubric resources submissionFormat",
            boolean="allowLateSubmission plagiarismCheck aiGradingEnabled peerReviewEnabled "
                    "groupAssignment published",
            date=f"dueDate {STAMPS}",
        ),
        "defaults": {
            "type": "essay",
            "passingScore": 60,
            "attempts": 1,
            "lateSubmissionPenalty": 10,
            "allowLateSubmission": True,
            "rubric": [],
            "resources": [],
            "submissionFormat": ["pdf", "doc", "docx"],
            "plagiarismCheck": True,
            "aiGradingEnabled": True,
            "peerReviewEnabled": False,
            "groupAssignment": False,
            "published": False,
        },
    },

    "submissions": {
        "required": ["assignmentId", "studentId", "content"],
        "types": fields(
            string=f"{RECORD} assignmentId studentId studentName content status feedback gradedBy",
            number="grade plagiarismScore attempt timeSpent",
            array="attachments rubricScores",
            object="aiAnalysis",
            date=f"submittedAt gradedAt {STAMPS}",
        ),
        "defaults": {
            "attachments": [],
            "status": "submitted",
            "attempt": 1,
            "submittedAt": utc_now_iso,
        },
    },

    "quizzes": {
        "required": ["title", "courseId", "questions", "timeLimit"],
        "types": fields(
            string=f"{RECORD} courseId lessonId title description instructions",
            array="questions",
            number="timeLimit attempts passingScore",
            boolean="randomizeQuestions showCorrectAnswers showScoreImmediately published",
            date=f"availableFrom availableUntil {STAMPS}",
        ),
        "defaults": {
            "attempts": 1,
            "passingScore": 70,
            "randomizeQuestions": False,
            "showCorrectAnswers": True,
            "showScoreImmediately": True,
            "published": False,
        },
    },

    "enrollments": {
        "required": ["studentId", "courseId"],
        "types": fields(
            string=f"{RECORD} studentId courseId status letterGrade certificateUrl withdrawalReason "
                   "refundStatus",
            number="progress grade refundAmount",
            array="completedLessons completedAssignments completedQuizzes",
            boolean="certificateIssued",
            date=f"enrolledAt lastAccessedAt withdrawalDate {STAMPS}",
        ),
        "defaults": {
            "status": "active",
            "progress": 0,
            "completedLessons": [],
            "completedAssignments": [],
            "completedQuizzes": [],
            "certificateIssued": False,
            "enrolledAt": utc_now_iso,
            "lastAccessedAt": utc_now_iso,
        },
    },

    "discussions": {
        "required": ["title", "content", "courseId", "authorId"],
        "types": fields(
            string=f"{RECORD} courseId authorId authorName authorAvatar title content category",
            array="tags replies attachments",
            boolean="isPinned isLocked",
            number="views likes",
            date=STAMPS,
        ),
        "defaults": {
            "category": "general",
            "tags": [],
            "isPinned": False,
            "isLocked": False,
            "views": 0,
            "likes": 0,
            "replies": [],
            "attachments": [],
        },
    },

    "announcements": {
        "required": ["title", "content", "authorId"],
        "types": fields(
            string=f"{RECORD} authorId authorName title content type targetAudience courseId priority",
            array="attachments readBy",
            boolean="published",
            date=f"scheduledFor expiresAt {STAMPS}",
        ),
        "defaults": {
            "type": "general",
            "targetAudience": "all",
            "priority": "medium",
            "attachments": [],
            "readBy": [],
            "published": True,
        },
    },

    "events": {
        "required": ["title", "startDate", "endDate", "organizerId"],
        "types": fields(
            string=f"{RECORD} title description type location meetingUrl courseId organizerId "
                   "recurrenceRule status",
            boolean="isOnline isRecurring",
            array="attendees reminders",
            date=f"startDate endDate {STAMPS}",
        ),
        "defaults": {
            "type": "event",
            "isOnline": False,
            "attendees": [],
            "isRecurring": False,
            "reminders": [],
            "status": "scheduled",
        },
    },

    "grades": {
        "required": ["studentId", "courseId", "type", "score", "maxScore"],
        "types": fields(
            string=f"{RECORD} studentId courseId assignmentId quizId type letterGrade feedback gradedBy",
            number="score maxScore percentage latePenalty",
            boolean="isExcused isLate",
            date=f"gradedAt {STAMPS}",
        ),
        "defaults": {
            "isExcused": False,
            "isLate": False,
            "gradedAt": utc_now_iso,
        },
    },

    "notifications": {
        "required": ["userId", "type", "title", "message"],
        "types": fields(
            string=f"{RECORD} userId type title message priority",
            object="data",
            boolean="isRead",
            date=f"scheduledFor expiresAt {STAMPS}",
        ),
        "defaults": {
            "data": {},
            "isRead": False,
            "priority": "medium",
        },
    },

    "messages": {
        "required": ["senderId", "recipientId", "subject", "content"],
        "types": fields(
            string=f"{RECORD} senderId senderName recipientId recipientName subject content parentId "
                   "threadId",
            array="attachments",
            boolean="isRead isStarred isArchived",
            date=STAMPS,
        ),
        "defaults": {
            "attachments": [],
            "isRead": False,
            "isStarred": False,
            "isArchived": False,
            "threadId": new_uuid,
        },
    },

    "analytics": {
        "required": ["userId", "event", "timestamp"],
        "types": fields(
            string=f"{RECORD} userId courseId event sessionId ipAddress userAgent",
            object="data deviceInfo",
            date=f"timestamp {STAMPS}",
        ),
        "defaults": {
            "data": {},
            "deviceInfo": {},
            "timestamp": utc_now_iso,
        },
    },

    "liveSessions": {
        "required": ["courseId", "instructorId", "title", "scheduledStart", "scheduledEnd"],
        "types": fields(
            string=f"{RECORD} courseId instructorId title description status meetingUrl recordingUrl",
            array="attendees",
            number="maxAttendees",
            boolean="isRecorded chatEnabled screenShareEnabled whiteboardEnabled pollsEnabled "
                    "breakoutRoomsEnabled",
            date=f"scheduledStart scheduledEnd actualStart actualEnd {STAMPS}",
        ),
        "defaults": {
            "status": "scheduled",
            "attendees": [],
            "maxAttendees": 100,
            "isRecorded": True,
            "chatEnabled": True,
            "screenShareEnabled": True,
            "whiteboardEnabled": True,
            "pollsEnabled": True,
            "breakoutRoomsEnabled": False,
        },
    },

    "certificates": {
        "required": ["studentId", "courseId", "courseName", "studentName", "completionDate"],
        "types": fields(
            string=f"{RECORD} studentId courseId courseName studentName instructorName grade "
                   "certificateUrl verificationCode",
            date=f"completionDate issuedAt {STAMPS}",
        ),
        "defaults": {
            "verificationCode": new_uuid,
            "issuedAt": utc_now_iso,
        },
    },

    "studyGroups": {
        "required": ["name", "courseId", "creatorId"],
        "types": fields(
            string=f"{RECORD} name description courseId creatorId meetingSchedule meetingUrl",
            array="members resources discussions",
            number="maxMembers",
            boolean="isPrivate",
            date=STAMPS,
        ),
        "defaults": {
            "members": [],
            "maxMembers": 10,
            "isPrivate": False,
            "resources": [],
            "discussions": [],
        },
    },

    "aiTutorSessions": {
        "required": ["userId", "subject", "sessionType"],
        "types": fields(
            string=f"{RECORD} userId courseId context difficulty subject sessionType feedback",
            array="messages learningObjectives",
            number="duration satisfaction",
            date=f"startedAt endedAt {STAMPS}",
        ),
        "defaults": {
            "messages": [],
            "context": "",
            "learningObjectives": [],
            "difficulty": "beginner",
            "sessionType": "general",
            "startedAt": utc_now_iso,
        },
    },
}
