# campus_sdk/models/administration.py
"""
Academic, financial and institutional-analytics collections.
Registered next to the platform collections when
ENABLE_EXTENDED_COLLECTIONS is on.
"""
from campus_sdk.core.timeutil import utc_now_iso

from .platform import RECORD, fields, new_uuid


ADMINISTRATION_SCHEMAS = {
    "quizAttempts": {
        "required": ["quizId", "studentId"],
        "types": fields(
            string=f"{RECORD} quizId studentId status",
            array="answers",
            number="score maxScore percentage timeSpent",
            date="startedAt completedAt",
        ),
        "defaults": {
            "answers": [], "score": 0, "maxScore": 0, "percentage": 0, "timeSpent": 0,
            "status": "in_progress", "startedAt": utc_now_iso,
        },
    },

    # Academic administration
    "transcripts": {
        "required": ["studentId", "academicYear"],
        "types": fields(
            string=f"{RECORD} studentId academicYear semester academicStanding issuedBy verificationCode",
            array="courses honors",
            number="gpa cumulativeGPA totalCredits cumulativeCredits",
            object="degreeProgress",
            boolean="isOfficial",
            date="issuedAt",
        ),
        "defaults": {
            "gpa": 0, "cumulativeGPA": 0, "totalCredits": 0, "cumulativeCredits": 0,
            "academicStanding": "good", "honors": [], "isOfficial": False,
            "verificationCode": new_uuid, "issuedAt": utc_now_iso,
        },
    },
    "degreePlans": {
        "required": ["studentId", "degreeType", "major"],
        "types": fields(
            string=f"{RECORD} studentId degreeType major minor concentration advisorId status",
            array="requiredCourses electiveCourses completedCourses plannedCourses",
            number="totalCreditsRequired creditsCompleted",
            date="expectedGraduation lastUpdated",
        ),
        "defaults": {
            "requiredCourses": [], "electiveCourses": [], "completedCourses": [], "plannedCourses": [],
            "totalCreditsRequired": 120, "creditsCompleted": 0, "status": "active",
            "lastUpdated": utc_now_iso,
        },
    },
    "creditTransfers": {
        "required": ["studentId", "fromInstitution", "courseName"],
        "types": fields(
            string=f"{RECORD} studentId fromInstitution courseName courseCode grade equivalentCourseId "
                   "equivalentCourseName status evaluatedBy notes",
            number="credits",
            array="documents",
            date="evaluatedAt",
        ),
        "defaults": {"status": "pending", "documents": [], "evaluatedAt": utc_now_iso},
    },

    # Financial management
    "tuitionRecords": {
        "required": ["studentId", "academicYear", "semester"],
        "types": fields(
            string=f"{RECORD} studentId academicYear semester status",
            number="tuitionAmount totalAmount paidAmount balance",
            array="fees transactions",
            object="paymentPlan",
            date="dueDate",
        ),
        "defaults": {
            "tuitionAmount": 0, "fees": [], "totalAmount": 0, "paidAmount": 0, "balance": 0,
            "status": "pending", "transactions": [],
        },
    },
    "financialAid": {
        "required": ["studentId", "aidType", "amount"],
        "types": fields(
            string=f"{RECORD} studentId aidType source academicYear semester status",
            number="amount",
            array="requirements disbursements conditions",
            object="renewalCriteria",
            date="applicationDate awardDate",
        ),
        "defaults": {
            "status": "pending", "requirements": [], "disbursements": [], "conditions": [],
            "applicationDate": utc_now_iso,
        },
    },
    "payments": {
        "required": ["studentId", "amount", "type"],
        "types": fields(
            string=f"{RECORD} studentId type method status transactionId reference description",
            number="amount refundAmount",
            object="metadata",
            date="dueDate paidDate refundDate",
        ),
        "defaults": {"status": "pending", "metadata": {}, "paidDate": utc_now_iso},
    },

    # Institutional analytics
    "accreditationReports": {
        "required": ["reportType", "academicYear"],
        "types": fields(
            string=f"{RECORD} reportType academicYear status submittedBy reviewedBy",
            object="data metrics compliance",
            array="recommendations",
            date="submittedAt reviewedAt",
        ),
        "defaults": {
            "data": {}, "metrics": {}, "compliance": {}, "recommendations": [], "status": "draft",
            "submittedAt": utc_now_iso,
        },
    },
    "retentionAnalytics": {
        "required": ["cohort", "academicYear"],
        "types": fields(
            string=f"{RECORD} cohort academicYear",
            number="totalStudents retainedStudents retentionRate",
            array="dropoutReasons interventions riskFactors successFactors",
            object="demographics",
            date="calculatedAt",
        ),
        "defaults": {
            "totalStudents": 0, "retainedStudents": 0, "retentionRate": 0, "dropoutReasons": [],
            "interventions": [], "riskFactors": [], "successFactors": [], "demographics": {},
            "calculatedAt": utc_now_iso,
        },
    },
    "facultyPerformance": {
        "required": ["facultyId", "academicYear"],
        "types": fields(
            string=f"{RECORD} facultyId academicYear evaluatedBy",
            number="teachingLoad overallRating",
            object="studentEvaluations courseCompletionRates",
            array="researchOutput serviceActivities professionalDevelopment goals achievements",
            date="evaluatedAt",
        ),
        "defaults": {
            "teachingLoad": 0, "studentEvaluations": {}, "courseCompletionRates": {},
            "researchOutput": [], "serviceActivities": [], "professionalDevelopment": [],
            "overallRating": 0, "goals": [], "achievements": [], "evaluatedAt": utc_now_iso,
        },
    },
    "resourceUtilization": {
        "required": ["resourceType", "period"],
        "types": fields(
            string=f"{RECORD} resourceType resourceId period",
            number="utilizationRate capacity actualUsage peakUsage efficiency cost revenue roi",
            array="recommendations",
            date="calculatedAt",
        ),
        "defaults": {
            "utilizationRate": 0, "capacity": 0, "actualUsage": 0, "peakUsage": 0, "efficiency": 0,
            "cost": 0, "revenue": 0, "roi": 0, "recommendations": [], "calculatedAt": utc_now_iso,
        },
    },

    # Library
    "libraryResources": {
        "required": ["title", "type", "isbn"],
        "types": fields(
            string=f"{RECORD} title author type isbn publisher category description location status "
                   "digitalUrl accessLevel addedBy",
            array="subjects checkoutHistory reservations reviews",
            number="rating",
            date="publicationDate addedAt",
        ),
        "defaults": {
            "subjects": [], "status": "available", "accessLevel": "public", "checkoutHistory": [],
            "reservations": [], "reviews": [], "rating": 0, "addedAt": utc_now_iso,
        },
    },
}
